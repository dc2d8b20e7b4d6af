"""HTTP API for VoteVision."""
