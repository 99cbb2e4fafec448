import soupsieve
from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator


class ScrapeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: HttpUrl
    selector: str = Field(default="img", alias="className", min_length=1)

    @field_validator("selector")
    @classmethod
    def check_selector(cls, v: str) -> str:
        try:
            soupsieve.compile(v)
        except soupsieve.SelectorSyntaxError as e:
            raise ValueError(f"invalid CSS selector: {e}")
        return v


class ScrapeResult(BaseModel):
    message: str
    folder: str
    count: int
