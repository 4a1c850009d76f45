from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from chain_fetch.models import ChainConfig, ChainLink, RequestStep


class ChainedFetchRequest(BaseModel):
    """Body of `POST /api/chainFetch`."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    steps: List[RequestStep] = Field(
        ...,
        min_length=1,
        description="Outbound calls, executed in order",
    )
    transforms: List[Optional[ChainLink]] = Field(
        default_factory=list,
        description="transforms[i] governs the data flow from steps[i] to steps[i+1]",
    )

    @field_validator("transforms", mode="before")
    @classmethod
    def _none_transforms(cls, v: Any) -> Any:
        return [] if v is None else v

    @model_validator(mode="after")
    def _links_fit_steps(self) -> "ChainedFetchRequest":
        # Extra links past the last step have nothing to feed; drop them.
        if len(self.transforms) > max(0, len(self.steps) - 1):
            self.transforms = self.transforms[: max(0, len(self.steps) - 1)]
        return self


class OpenFetchRequest(RequestStep):
    """Body of `POST /api/openFetch`: one step plus an optional follow-up."""

    chain_config: Optional[ChainConfig] = Field(default=None, alias="chainConfig")

    def as_step(self) -> RequestStep:
        return RequestStep.model_validate(self.model_dump(exclude={"chain_config"}))
