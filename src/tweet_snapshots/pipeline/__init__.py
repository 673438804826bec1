"""Per-user snapshot pipeline.

Lists a user's content URLs, fetches a bounded selection of them with at
most five requests in flight, and stores the resulting ``url -> content``
map under ``daily/<username>``.

Sub-modules:
- ``config``: fixed limits and listing paths
- ``chunking``: fixed-size partitioning of ordered sequences
- ``content_fetcher``: async httpx fetch of one URL, failures folded into the result
- ``listing``: users list and per-user URL list client
- ``aggregator``: bounded fan-out of content fetches into a snapshot
- ``writer``: JSON serialization and single-put persistence
- ``dispatch``: sequential batch loop with per-message error isolation
- ``enqueue``: queue one message per listed user
"""
