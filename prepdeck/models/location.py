"""
Addressable view locations.

Results are reachable by URL so a generated set can be bookmarked or
shared, not only held in memory.
"""
from typing import Optional
from urllib.parse import parse_qs, urlencode, urlsplit
from pydantic import BaseModel

from .enums import Difficulty

RESULTS_VIEW_PATH = "/display-questions"
PREVIOUS_QUESTIONS_PATH = "/prev-questions"


class ResultsLocation(BaseModel):
    """Where a finished generation lands: round, difficulty and language."""
    company_id: str
    round_id: str
    round_name: str
    difficulty: Optional[Difficulty] = None
    language: Optional[str] = None

    def to_path(self) -> str:
        params = {
            "roundId": self.round_id,
            "roundName": self.round_name,
            "companyId": self.company_id,
        }
        if self.difficulty is not None:
            params["difficulty"] = self.difficulty.value
        if self.language:
            params["language"] = self.language
        return f"{RESULTS_VIEW_PATH}?{urlencode(params)}"

    @classmethod
    def from_path(cls, path: str) -> "ResultsLocation":
        """
        Parse a path produced by `to_path`.

        Missing ids or an unknown difficulty raise ValueError.
        """
        query = parse_qs(urlsplit(path).query)

        def first(key: str) -> Optional[str]:
            values = query.get(key)
            return values[0] if values else None

        company_id, round_id = first("companyId"), first("roundId")
        if not company_id or not round_id:
            raise ValueError(f"Not a results location: {path}")

        return cls(
            company_id=company_id,
            round_id=round_id,
            round_name=first("roundName") or "",
            difficulty=first("difficulty"),
            language=first("language"),
        )


def previous_questions_path(company_id: str, round_id: str, round_name: str) -> str:
    """Location of the browse view for everything generated in a round."""
    params = {"roundId": round_id, "roundName": round_name, "companyId": company_id}
    return f"{PREVIOUS_QUESTIONS_PATH}?{urlencode(params)}"
