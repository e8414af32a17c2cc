# app/services/variant_options.py
"""
Variant option handling.

A product declares an ordered option schema (`Product.option_names`, e.g.
["color", "size"]); each variant maps every one of those names to a value.
Options are always presented in schema order.
"""
from typing import Mapping, Sequence

from app.models.product import ProductVariant
from app.schemas.product import OptionValues, VariantOption


def validate_options(
    option_names: Sequence[str],
    options: Mapping[str, object],
) -> list[str]:
    """
    Errors for an options mapping checked against the schema.
    Every schema name must be present with a non-blank value.
    """
    errors: list[str] = []
    known = set(option_names)

    for name, value in options.items():
        if name not in known:
            errors.append(f"Unknown option '{name}'")
        elif not isinstance(value, str) or not value.strip():
            errors.append(f"Option '{name}' must have a value")

    for name in option_names:
        if name not in options:
            errors.append(f"Missing option '{name}'")

    return errors


def ordered_options(
    option_names: Sequence[str],
    options: Mapping[str, str],
) -> list[VariantOption]:
    """Schema-ordered (name, value) pairs; names outside the schema are dropped."""
    return [
        VariantOption(name=name, value=str(options[name]))
        for name in option_names
        if name in options
    ]


def find_by_options(
    variants: Sequence[ProductVariant],
    requested: Mapping[str, str],
) -> ProductVariant | None:
    """First variant whose options match every requested pair."""
    for variant in variants:
        if all(variant.options.get(name) == value for name, value in requested.items()):
            return variant
    return None


def available_options(
    option_names: Sequence[str],
    variants: Sequence[ProductVariant],
) -> list[OptionValues]:
    """Distinct values per option, in schema order then first-seen order."""
    result: list[OptionValues] = []
    for name in option_names:
        values: list[str] = []
        for variant in variants:
            value = variant.options.get(name)
            if value is not None and value not in values:
                values.append(value)
        result.append(OptionValues(name=name, values=values))
    return result
