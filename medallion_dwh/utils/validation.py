"""
Input validation utilities for the CLIs.

Command-line values are checked here before they reach the pipeline so a
typo fails fast with a readable message instead of half-way through a batch.
"""

from ..core.catalog import LAYERS


class InvalidInputError(ValueError):
    """Raised when a command-line input is not acceptable."""
    pass


def validate_layer(layer: str, field_name: str = "layer") -> str:
    """
    Validate a layer name.

    Args:
        layer: bronze, silver or gold (case-insensitive, padding ignored)
        field_name: Name of the field (for error messages)

    Returns:
        The normalized layer name

    Raises:
        InvalidInputError: If the layer is unknown

    Examples:
        >>> validate_layer(" Silver ")
        'silver'
        >>> validate_layer("platinum")  # doctest: +SKIP
        InvalidInputError: layer must be one of bronze, silver, gold
    """
    if not layer or not isinstance(layer, str):
        raise InvalidInputError(f"{field_name} must be a non-empty string")

    normalized = layer.strip().lower()
    if normalized not in LAYERS:
        raise InvalidInputError(f"{field_name} must be one of {', '.join(LAYERS)}, got '{layer}'")
    return normalized


def validate_layers(layers: list[str], field_name: str = "layers") -> list[str]:
    """
    Validate a layer sequence for a pipeline run.

    Layers are returned in medallion order (bronze, silver, gold) without
    duplicates, whatever order they were given in.

    Raises:
        InvalidInputError: If the list is empty or holds an unknown layer
    """
    if not layers:
        raise InvalidInputError(f"{field_name} must name at least one layer")

    requested = {validate_layer(layer, field_name) for layer in layers}
    return [layer for layer in LAYERS if layer in requested]


def validate_limit(limit: int, field_name: str = "limit", max_limit: int = 10000) -> int:
    """
    Validate a limit parameter for log queries.

    Raises:
        InvalidInputError: If the limit is not a positive integer up to max_limit

    Examples:
        >>> validate_limit(100)
        100
        >>> validate_limit(0)  # doctest: +SKIP
        InvalidInputError: limit must be a positive integer
    """
    if not isinstance(limit, int):
        raise InvalidInputError(f"{field_name} must be an integer, got {type(limit).__name__}")

    if limit <= 0:
        raise InvalidInputError(f"{field_name} must be a positive integer, got {limit}")

    if limit > max_limit:
        raise InvalidInputError(f"{field_name} exceeds maximum of {max_limit}")

    return limit


def validate_file_path(file_path: str, field_name: str = "file_path") -> str:
    """
    Validate a file path given on the command line.

    Returns:
        The path stripped of surrounding whitespace

    Raises:
        InvalidInputError: If the path is empty, contains null bytes or
            is unreasonably long
    """
    if not file_path or not isinstance(file_path, str):
        raise InvalidInputError(f"{field_name} must be a non-empty string")

    file_path = file_path.strip()

    if not file_path:
        raise InvalidInputError(f"{field_name} cannot be empty or whitespace-only")

    if "\x00" in file_path:
        raise InvalidInputError(f"{field_name} contains null bytes")

    if len(file_path) > 4096:
        raise InvalidInputError(f"{field_name} exceeds maximum length of 4096 characters")

    return file_path
