from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Any, Literal, Optional


class PatchOperation(BaseModel):
    """A single RFC 6902 operation"""
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    op: Literal["add", "remove", "replace", "move", "copy", "test"] = Field(
        ...,
        description="JSON Patch operation name"
    )
    path: str = Field(
        ...,
        description="JSON pointer to the target location"
    )
    value: Any = Field(
        None,
        description="Value for add, replace and test operations"
    )
    from_: Optional[str] = Field(
        None,
        alias="from",
        description="Source JSON pointer for move and copy operations"
    )

    @field_validator("path", "from_")
    @classmethod
    def check_pointer(cls, pointer: Optional[str]) -> Optional[str]:
        if pointer is not None and pointer != "" and not pointer.startswith("/"):
            raise ValueError(f"'{pointer}' is not a JSON pointer")
        return pointer

    @model_validator(mode="after")
    def check_members(self):
        if self.op in ("add", "replace", "test") and "value" not in self.model_fields_set:
            raise ValueError(f"'{self.op}' operation requires a 'value'")
        if self.op in ("move", "copy") and self.from_ is None:
            raise ValueError(f"'{self.op}' operation requires 'from'")
        return self

    def to_json_patch(self) -> dict:
        return self.model_dump(by_alias=True, exclude_unset=True)
