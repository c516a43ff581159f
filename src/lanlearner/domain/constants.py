"""Centralized constants for Lanlearner.

Scheduling tables, hierarchy sentinels and storage keys live here so every
layer imports from a single source of truth.
"""

from datetime import timedelta

# ---------- SRS ----------
# Days until the next review, indexed by the stage the item is entering.
SRS_INTERVALS_DAYS: dict[int, int] = {
    0: 1,
    1: 2,
    2: 7,
    3: 30,
    4: 182,
}
MAX_SRS_STAGE = max(SRS_INTERVALS_DAYS)

# ---------- Hierarchies ----------
MAIN_ROOT_ID = "root"
NEW_KNOWLEDGE_ROOT_ID = "new_knowledge_root"
PATH_SEPARATOR = " > "
UNCATEGORIZED_LABEL = "Uncategorized"
TOP_LEVEL_LABEL = "Top level"

# Seeded into an empty main hierarchy on first load.
DEFAULT_MAIN_CATEGORIES = [
    "Nouns, Articles, Pronouns, Numerals, Adjectives and Adverbs",
    "Verbs, Prepositions and Tenses",
    "Simple Sentences",
    "Conjunctions, Infinitives and Gerunds",
    "Noun, Relative and Adverbial Clauses",
    "Subjunctive Mood, Emphasis and Inversion",
]

# ---------- Recycle Bin ----------
RECYCLE_BIN_RETENTION = timedelta(hours=24)

# ---------- Storage ----------
DEFAULT_STORAGE_QUOTA_BYTES = 5 * 1024 * 1024

# ---------- Page Export ----------
PAGE_EXPORT_CHUNK_SIZE = 100
REQUEST_TIMEOUT = 30.0

# ---------- Review ----------
UPCOMING_PREVIEW_SIZE = 5

# ---------- Example Search ----------
EXAMPLE_MAX_LENGTH = 350
EXAMPLE_CONTEXT_BEFORE = 80
EXAMPLE_CONTEXT_AFTER = 120
