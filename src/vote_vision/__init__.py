"""VoteVision: community voting on prompts for AI-generated video."""

__version__ = "1.0.0"
