"""Mapping of multipart property submissions onto the domain model."""

from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple
from pydantic import ValidationError

from ..exceptions import InvalidRequest
from ..models.property_models import PropertyFields
from .ingestion import SubmittedImage

REPEATED_FIELDS = {"amenities"}
IMAGE_FIELD = "images"


def _is_file(value: Any) -> bool:
    return hasattr(value, "read") and hasattr(value, "filename")


def unflatten_form(items: Iterable[Tuple[str, Any]]) -> Dict[str, Any]:
    """Reassemble dotted form keys into nested dictionaries.

    ``location.city`` becomes ``{"location": {"city": ...}}``; repeated
    fields collect into lists; for any other key the first value wins.
    File parts are left out.

    Args:
        items: (key, value) pairs in submission order

    Returns:
        Dict[str, Any]: Nested field data
    """
    data: Dict[str, Any] = {}

    for raw_key, value in items:
        if _is_file(value):
            continue
        # Older forms post "rates.nightly." with a trailing dot
        key = raw_key.strip().rstrip(".")
        if not key or key == IMAGE_FIELD:
            continue

        if key in REPEATED_FIELDS:
            data.setdefault(key, []).append(value)
            continue

        *parents, leaf = key.split(".")
        node = data
        for part in parents:
            child = node.setdefault(part, {})
            if not isinstance(child, dict):
                raise InvalidRequest(f"Conflicting form field: {raw_key}")
            node = child
        if isinstance(node.get(leaf), dict):
            raise InvalidRequest(f"Conflicting form field: {raw_key}")
        node.setdefault(leaf, value)

    return data


def build_property_fields(items: Iterable[Tuple[str, Any]]) -> PropertyFields:
    """Validate a flat submission into PropertyFields.

    Raises:
        InvalidRequest: If required fields are missing or values are malformed
    """
    data = unflatten_form(items)
    try:
        return PropertyFields.model_validate(data)
    except ValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
        raise InvalidRequest(f"Invalid property fields: {', '.join(fields)}") from e


class PropertySubmission:
    """A submitted property form, read on demand.

    Fields are validated and image parts are read only when first asked for.
    """

    def __init__(self, items: Iterable[Tuple[str, Any]] = (),
                 fields: Optional[PropertyFields] = None,
                 images: Optional[Sequence[SubmittedImage]] = None):
        self.items = list(items)
        self._fields = fields
        self._images = list(images) if images is not None else None

    @classmethod
    def of(cls, fields: PropertyFields, images: Sequence[SubmittedImage] = ()) -> "PropertySubmission":
        """Submission with already validated fields and images."""
        return cls(fields=fields, images=images)

    def fields(self) -> PropertyFields:
        """Validated property fields.

        Raises:
            InvalidRequest: If required fields are missing or values are malformed
        """
        if self._fields is None:
            self._fields = build_property_fields(self.items)
        return self._fields

    async def images(self) -> List[SubmittedImage]:
        """Image parts in submission order, including ones without a file name."""
        if self._images is None:
            images = []
            for key, value in self.items:
                if key != IMAGE_FIELD or not _is_file(value):
                    continue
                images.append(SubmittedImage(
                    filename=value.filename or "",
                    content=await value.read(),
                    content_type=getattr(value, "content_type", None),
                ))
            self._images = images
        return self._images


def read_submission(form) -> PropertySubmission:
    """Wrap a parsed multipart form, e.g. starlette FormData, as a submission."""
    return PropertySubmission(form.multi_items())
