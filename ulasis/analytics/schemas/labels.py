from typing import Literal, Annotated
from annotated_types import MaxLen
from pydantic import BaseModel, Field

Topic = Literal['Pelayanan', 'Kualitas Produk', 'Fasilitas', 'Harga', 'Kebersihan', 'Suasana']


class FeedbackLabels(BaseModel):
    sentiment: Literal['positive', 'neutral', 'negative'] = Field(..., description="Overall tone of the customer's comment")
    topics: Annotated[list[Topic], MaxLen(6)] = Field(default_factory=list, description="Business areas the comment talks about; empty when none apply")
    reasoning: str | None = Field(None, description="One short sentence explaining the chosen sentiment")
