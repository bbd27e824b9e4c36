"""Score snapshots shared by the store, the wire protocol and the client."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator


class PlayerScore(BaseModel):
    model_config = ConfigDict(frozen=True)

    username: str = Field(min_length=1)
    correct: int = Field(default=0, ge=0)
    incorrect: int = Field(default=0, ge=0)
    total: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def check_total(self) -> "PlayerScore":
        if self.total != self.correct + self.incorrect:
            raise ValueError("total must equal correct + incorrect")
        return self

    @classmethod
    def zero(cls, username: str) -> "PlayerScore":
        return cls(username=username)
