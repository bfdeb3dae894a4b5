from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class Pagination(BaseModel):
    """Paging envelope; serialized as ``currentPage``, ``totalPages`` and so on."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    current_page: int
    total_pages: int
    total_count: int
    has_next_page: bool
    has_prev_page: bool


class MessageResponse(BaseModel):
    message: str
