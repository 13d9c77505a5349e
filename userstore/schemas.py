"""Input models accepted by the user store."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RegistrationRequest(BaseModel):
    """Registration payload as submitted by a sign-up form.

    Every field is optional at parse time so that the store can report
    missing values as a business-rule failure rather than a parse error.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    company: Optional[str] = None

    def missing_required(self) -> bool:
        return not (
            self.username
            and self.username.strip()
            and self.email
            and self.email.strip()
            and self.password
        )


__all__ = ["RegistrationRequest"]
