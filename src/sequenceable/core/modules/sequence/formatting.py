"""Option resolution and default formatting of sequences."""

from datetime import datetime

from sequenceable.core.modules.sequence.models import (
    FormatContext,
    Formatter,
    GenerationOptions,
    ResolvedOptions,
    Resolver,
    SequenceContext,
    SequenceDefaults,
)
from sequenceable.errors import ConfigurationError
from sequenceable.utils import pad_start


def default_format(ctx: FormatContext) -> str:
    """Pad the sequence to length and join it with prefix and suffix, skipping empty parts.

    prefix="VIP", sequence=1, length=4, pad="0" renders as "VIP0001".
    """
    padded = pad_start(str(ctx.sequence), ctx.length, ctx.pad)
    parts = [ctx.prefix, padded, ctx.suffix]
    return ctx.separator.join(part for part in parts if part)


def _resolve_tag(name: str, value: str | Resolver | None, context: SequenceContext) -> str | None:
    if value is None:
        return None
    if callable(value):
        value = value(context.fields)
        if value is not None and not isinstance(value, str):
            raise ConfigurationError(f"{name} resolver must return a string, got {type(value).__name__}")
    if not value:
        return None
    # Trimmed like the stored key, so the hook's prefix check matches generated values
    return value.strip() or None


def resolve_prefix(
    options: GenerationOptions, context: SequenceContext, defaults: SequenceDefaults, timestamp: datetime
) -> str:
    """Literal prefix, else resolver result, else the timestamp formatted with the year format."""
    prefix = _resolve_tag("prefix", options.prefix, context) or timestamp.strftime(defaults.year_format)
    if not prefix:
        raise ConfigurationError("Sequence prefix resolved to an empty value")
    return prefix


def resolve_suffix(options: GenerationOptions, context: SequenceContext) -> str:
    return _resolve_tag("suffix", options.suffix, context) or ""


def resolve_namespace(options: GenerationOptions, context: SequenceContext, defaults: SequenceDefaults) -> str:
    namespace = (options.namespace or context.record_type or defaults.namespace or "").strip()
    if not namespace:
        raise ConfigurationError("Sequence namespace is not set and no default is configured")
    return namespace


def resolve_options(
    options: GenerationOptions, context: SequenceContext, defaults: SequenceDefaults, timestamp: datetime
) -> ResolvedOptions:
    """Apply per-call options over the configured defaults."""
    return ResolvedOptions(
        namespace=resolve_namespace(options, context, defaults),
        prefix=resolve_prefix(options, context, defaults, timestamp),
        suffix=resolve_suffix(options, context),
        increment=options.increment if options.increment is not None else defaults.increment,
        length=options.length if options.length is not None else defaults.length,
        pad=options.pad or defaults.pad,
        separator=options.separator if options.separator is not None else defaults.separator,
    )


def resolve_formatter(options: GenerationOptions) -> Formatter:
    return options.format or default_format
