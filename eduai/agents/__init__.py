"""
Multi-Agent System for Adaptive Tutoring.

This package contains the agents that answer a learner's question:
- Orchestrator: Coordinates all agents
- Extraction: Key phrases, relation triples and topic type
- ConceptGraph: Linear concept map and its diagram
- Engagement: Emotion-based engagement score
- Response: Base explanation drafting
- Adaptive: Shapes the explanation to the engagement level
"""
