"""Parse options."""

from pydantic import BaseModel, Field


class ParseOptions(BaseModel):
    """Knobs for a single parse.

    Defaults follow the language: a tab counts as four columns, and block
    bodies (block strings, block sequences, block mappings) sit two columns
    deeper than the line that opens them.
    """

    tab_width: int = Field(default=4, ge=1)
    indent_step: int = Field(default=2, ge=1)
    resolve_references: bool = True
