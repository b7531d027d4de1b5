"""
Token data model.

Represents one annotated word of a review description, as returned by the
tagger contract.
"""

from dataclasses import dataclass

TOKEN_COLUMNS = ["doc_id", "lemma", "upos"]


@dataclass(frozen=True)
class Token:
    """
    A lemma with its part-of-speech tag.
    Many-to-one with Review through doc_id.
    """
    doc_id: int  # Review id the token came from
    lemma: str  # Lowercase dictionary form
    upos: str  # Universal POS tag (e.g. "NOUN", "PUNCT")

    def to_dict(self) -> dict:
        """Convert to a token table record."""
        return {"doc_id": self.doc_id, "lemma": self.lemma, "upos": self.upos}
