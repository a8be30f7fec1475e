from pydantic import BaseModel, Field, model_validator


class SelectedMethod(BaseModel):
    name: str
    # Canonical signature, or the 0x topic digest for hashed events.
    method: str


class UserInput(BaseModel):
    start_block: int = Field(..., ge=0)
    end_block: int | None = Field(default=None, ge=0)
    functions: list[SelectedMethod] = Field(default_factory=list)
    events: list[SelectedMethod] = Field(default_factory=list)
    abi_path: str
    address: str | None = None

    @model_validator(mode="after")
    def validate_block_range(self) -> "UserInput":
        if self.end_block is not None and self.end_block < self.start_block:
            raise ValueError("end_block must not be lower than start_block")
        return self


class ImportResult(BaseModel):
    address: str | None = None
    start_block: int
    events: list[str] = Field(default_factory=list)
    functions: list[str] = Field(default_factory=list)
    manifest_path: str
    handler_file: str
