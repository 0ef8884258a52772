"""Tagged result of a reservation mutation."""

from typing import Literal

from pydantic import BaseModel, ConfigDict

from ..models import Reservation
from .errors import ActionError


class Ok(BaseModel):
    """
    The backend accepted the action.

    ``reservation`` is the updated record, or ``None`` when the response
    carried no readable body.
    """

    tag: Literal["ok"] = "ok"
    reservation: Reservation | None = None

    @property
    def is_ok(self) -> bool:
        return True

    model_config = ConfigDict(frozen=True)


class Err(BaseModel):
    """The action failed; ``error`` is already classified."""

    tag: Literal["err"] = "err"
    error: ActionError

    @property
    def is_ok(self) -> bool:
        return False

    model_config = ConfigDict(frozen=True)


MutationResult = Ok | Err
