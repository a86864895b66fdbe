"""
ChessWire Content Analysis Pipeline

Turns chess content (move-notation games, articles, video and audio
transcripts) into an emotional heatmap, key moments, narration-ready
text and social-media snippets.
"""

__version__ = "0.1.0"
__author__ = "ChessWire Team"

from chesswire.pipeline import ContentAnalysisPipeline, analyze_content, batch_analyze
from chesswire.sinks import JsonLinesResultSink
from chesswire.voice_client import VoiceRenderingClient

__all__ = [
    "ContentAnalysisPipeline",
    "analyze_content",
    "batch_analyze",
    "JsonLinesResultSink",
    "VoiceRenderingClient",
]
