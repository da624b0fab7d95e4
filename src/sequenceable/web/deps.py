from typing import Annotated, cast

from fastapi import Depends, Request

from sequenceable.app import App


async def get_app(request: Request) -> App:
    return cast(App, request.app.state.app)


# Injects the App facade stored on app.state by create_fastapi_app
AppDep = Annotated[App, Depends(get_app)]
