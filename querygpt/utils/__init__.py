from .sql_text import extract_sql_and_explanation, sanitize_sql, strip_fences
from .vector_search import ExampleVectorIndex, VectorHit

__all__ = [
    "extract_sql_and_explanation",
    "sanitize_sql",
    "strip_fences",
    "ExampleVectorIndex",
    "VectorHit",
]
