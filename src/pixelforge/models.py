from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Annotated, List, Literal, Optional, Union


class GenerationRequest(BaseModel):
    prompt: str

    @field_validator("prompt")
    @classmethod
    def prompt_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Prompt is required")
        return value


class GeneratedImage(BaseModel):
    base64: str
    seed: Optional[int] = None


class CreditInfo(BaseModel):
    credits_used: Optional[str] = None
    remaining_credits: Optional[str] = None


class GenerationResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    images: List[GeneratedImage] = Field(default_factory=list, max_length=1)
    credits_used: Optional[str] = Field(None, alias="creditsUsed")
    remaining_credits: Optional[str] = Field(None, alias="remainingCredits")


class GenerationFailure(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    error: str
    status_code: int = Field(500, exclude=True)
    credits_used: Optional[str] = Field(None, alias="creditsUsed")
    remaining_credits: Optional[str] = Field(None, alias="remainingCredits")


class AttemptSuccess(BaseModel):
    kind: Literal["success"] = "success"
    result: GenerationResult


class PermanentFailure(BaseModel):
    kind: Literal["permanent"] = "permanent"
    message: str
    status_code: int
    moderated: bool = False
    credits: CreditInfo = Field(default_factory=CreditInfo)


class TransientFailure(BaseModel):
    kind: Literal["transient"] = "transient"
    message: str
    status_code: Optional[int] = None
    credits: CreditInfo = Field(default_factory=CreditInfo)


AttemptOutcome = Annotated[
    Union[AttemptSuccess, PermanentFailure, TransientFailure],
    Field(discriminator="kind"),
]
