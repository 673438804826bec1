"""Constants for the snapshot pipeline.

These are fixed limits, not runtime settings: changing them changes which
URLs end up in a snapshot, so they live in code rather than in
:class:`~tweet_snapshots.config.settings.Settings`.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Fan-out limits
# ---------------------------------------------------------------------------

#: Maximum number of content URLs fetched per user per run.
MAX_PER_USER: int = 25

#: Number of content URLs fetched concurrently.  Groups of this size run one
#: after another; at most this many fetches are ever in flight.
FETCH_GROUP_SIZE: int = 5

# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------

#: Prefix of every snapshot key.  The username is appended verbatim.
SNAPSHOT_KEY_PREFIX: str = "daily/"

# ---------------------------------------------------------------------------
# Listing service paths
# ---------------------------------------------------------------------------

#: Path (relative to ``Settings.listing_base_url``) of the users list.
USERS_PATH: str = "/users.json"

#: Path template of a user's content URL list.
USER_LISTING_PATH: str = "/{username}/with_replies.json"

# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

#: User-agent string sent with every listing and content request.
USER_AGENT: str = "TweetSnapshots/0.1 (daily snapshot worker)"
