"""
Visual Generator Agent.

Builds the concept map shown next to an answer: the ranked key phrases are
chained into a directed path (earlier rank -> later rank) and, when enabled,
drawn to a PNG with networkx + matplotlib.

The graph structure is the contract; the picture is best effort.
"""

import hashlib
import json
from pathlib import Path
from typing import List, Optional, Sequence
import logging
import uuid

import networkx as nx
from matplotlib.figure import Figure

from eduai.core.config import settings
from eduai.core.exceptions import RenderFailure
from eduai.models.pipeline import ConceptGraph, TopicType

logger = logging.getLogger(__name__)


class ConceptGraphBuilder:
    """Chains ranked key phrases into a ConceptGraph."""

    def build(self, key_phrases: Sequence[str]) -> ConceptGraph:
        nodes: List[str] = []
        edges = []
        previous: Optional[str] = None

        for phrase in key_phrases:
            if phrase not in nodes:
                nodes.append(phrase)
            if previous is not None and previous != phrase:
                edge = (previous, phrase)
                if edge not in edges:
                    edges.append(edge)
            previous = phrase

        return ConceptGraph(nodes=nodes, edges=edges)

    @staticmethod
    def to_networkx(graph: ConceptGraph) -> nx.DiGraph:
        digraph = nx.DiGraph()
        digraph.add_nodes_from(graph.nodes)
        digraph.add_edges_from(graph.edges)
        return digraph


def diagram_title(topic_type: TopicType) -> str:
    return "Process Map" if topic_type == TopicType.PROCESS else "Concept Map"


class GraphRenderer:
    """
    Draws a ConceptGraph to a PNG file.

    Uses an off-screen matplotlib Figure, so no display or GUI backend is needed.
    """

    def __init__(self, output_dir: Optional[str] = None):
        self.output_dir = Path(output_dir or settings.DIAGRAM_DIR)

    @staticmethod
    def file_name(graph: ConceptGraph, title: str) -> str:
        """Content-addressed name, so one graph and title always map to one file."""
        payload = json.dumps([title, graph.nodes, graph.edges], ensure_ascii=False)
        digest = hashlib.sha1(payload.encode("utf-8")).hexdigest()[:16]
        return f"concept_map_{digest}.png"

    def render(self, graph: ConceptGraph, title: str = "Concept Map") -> Path:
        """
        Render `graph` and return the path of the image.

        An identical graph with the same title reuses the existing file.

        Raises:
            RenderFailure: If the graph is empty or drawing/saving fails
        """
        if graph.is_empty:
            raise RenderFailure("Nothing to draw: concept graph is empty")

        path = self.output_dir / self.file_name(graph, title)
        if path.exists():
            logger.debug(f"Reusing concept map {path}")
            return path

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            digraph = ConceptGraphBuilder.to_networkx(graph)

            figure = Figure(figsize=(8, 5))
            ax = figure.subplots()
            positions = nx.spring_layout(digraph, seed=42)
            nx.draw(
                digraph,
                pos=positions,
                ax=ax,
                with_labels=True,
                node_color="skyblue",
                node_size=2000,
                font_size=10,
                arrows=True,
            )
            ax.set_title(title)

            # Concurrent renders of one graph each write aside, then replace
            partial = path.with_name(f".{path.stem}.{uuid.uuid4().hex[:8]}.png")
            figure.savefig(partial, format="png")
            partial.replace(path)
        except Exception as e:
            raise RenderFailure(f"Could not render concept map: {e}") from e

        logger.info(f"🖼️ Concept map saved to {path}")
        return path
