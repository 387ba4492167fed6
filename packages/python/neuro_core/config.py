from pathlib import Path


BRAIN_FILENAME = "user_neuro_brain.json"
BRAIN_SCHEMA = "neuro-brain"
BRAIN_SCHEMA_VERSION = 1

DEFAULT_DATA_DIR = Path.home() / ".neurofeed"

REDIS_NAMESPACE = "neuro:brain:"

SEED_QUERIES = ("New Trending", "Music", "Gaming", "Technology", "Science")

MUSIC_KEYWORDS = frozenset(
    {"music", "song", "lyrics", "remix", "lofi", "playlist", "official audio"}
)

STOP_WORDS = frozenset(
    {
        "the", "and", "for", "that", "this", "with", "you", "video", "how", "what",
        "official", "channel", "when", "mom", "types", "your", "computer", "which",
        "can", "make", "seen", "most", "into", "best", "recap", "review",
    }
)
