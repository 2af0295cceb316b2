"""
Company and interview round models.
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator


class Company(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    company_name: str = Field(alias="companyName")

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_text(cls, value):
        return str(value) if value is not None else value


class Round(BaseModel):
    """A named interview stage under a company."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    round_name: str = Field(alias="roundName")

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_text(cls, value):
        return str(value) if value is not None else value


class DashboardDetails(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_companies: int = Field(0, alias="totalCompanies", ge=0)
    total_rounds: int = Field(0, alias="totalRounds", ge=0)
