"""Pydantic model of the ``addonDescriptor`` pipeline structure.

The add-on descriptor is produced by earlier steps of the add-on build
pipeline and passed to this step as a JSON string. Only the Target
Vector ID is needed here; the remaining fields are kept so log lines can
name the product version being published.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from aakaas_publish.core import constants as C
from aakaas_publish.core.config import ConfigValidationError


class Repository(BaseModel):
    """One software component version listed in the descriptor."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str = ""
    version: str = ""
    package_name: str = Field(default="", alias="packageName")


class AddonDescriptor(BaseModel):
    """Add-on product version descriptor.

    Attributes:
        addon_product: Product name (e.g. ``"/NAMESPC/PRODUCTX"``).
        addon_version: Product version in ``release.sp.patch`` form.
        target_vector_id: Target Vector created for this product version.
        repositories: Software component versions of the product.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    addon_product: str = Field(default="", alias="addonProduct")
    addon_version: str = Field(default="", alias="addonVersion")
    target_vector_id: str = Field(default="", alias="targetVectorID")
    repositories: list[Repository] = Field(default_factory=list)

    @classmethod
    def from_json(cls, raw: str) -> AddonDescriptor:
        """Parse the descriptor JSON string.

        Raises:
            ConfigValidationError: If *raw* is not a valid descriptor.
        """
        try:
            return cls.model_validate_json(raw)
        except PydanticValidationError as exc:
            raise ConfigValidationError(
                C.OPT_ADDON_DESCRIPTOR,
                _preview(raw),
                f"is not a valid add-on descriptor ({exc.error_count()} error(s))",
            ) from exc

    def require_target_vector_id(self) -> str:
        """Return the Target Vector ID. Raises ``ConfigValidationError`` if blank."""
        tv_id = self.target_vector_id.strip()
        if not tv_id:
            raise ConfigValidationError(
                "targetVectorID",
                self.target_vector_id,
                "Parameter missing. Please provide the target vector id",
            )
        return tv_id


def _preview(raw: str, limit: int = 80) -> str:
    return raw if len(raw) <= limit else raw[:limit] + "..."
