from typing import List

from pydantic import BaseModel


class ErrorOut(BaseModel):
    detail: str
    message: str
    recovery_actions: List[str]
