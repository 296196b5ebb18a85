"""
Newsdesk Service

News-driven trade candidates for NSE equities. Polls per-symbol news, keeps a
deduplicated sentiment-tagged feed, and fuses it with a live price cache to
rank trade calls. Price deltas are streamed to subscribers over WebSocket.

Architecture:
    Google News RSS -> rss_client -> scheduler (news cache) --+
                                                              +-> signals -> calls
    ticks (mock / Redis) -> quotes.PriceCache ----------------+
                                   |
                                   +-> quotes.PriceHub -> ws_server, relay

Components:
    - sentiment: headline impact classifier
    - rss_client: fetch adapter and feed normalizer
    - scheduler: news cache state and TTL-gated refresh
    - signals: trade call generator
    - quotes: price cache, broadcast hub, mock feed
    - relay: Redis tick intake and quote fan-out
    - ws_server: WebSocket push channel and query requests
"""
