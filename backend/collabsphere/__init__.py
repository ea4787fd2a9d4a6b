"""
CollabSphere signaling server.

Real-time session coordination for peer-to-peer calls: presence, negotiation
relay, recording arbitration and chat history replay.
"""

__version__ = "1.0.0"
