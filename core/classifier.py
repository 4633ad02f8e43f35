"""
core/classifier.py

Lane classification for inbound messages.

This module decides which handling lane an inbound message belongs to. It is a
deterministic, side-effect-free function of the text and the current pattern
tables, so it can never fail and is cheap enough to run before every completion.

Algorithm:
1. An explicit lane tag (e.g. "@implementation") wins immediately; no scoring.
2. Otherwise each lane has an ordered pattern table. Every pattern that matches
   adds one point to its lane.
3. The lane with the strictly higher score wins. Ties, including 0-0, go to the
   strategic lane: unclear intent is never routed to the lane whose output is
   scanned for commands.
"""

import logging
import re
from typing import Dict, List, Optional, Pattern, Tuple, Union

from shared.models import Lane, LaneAnalysis

logger = logging.getLogger(__name__)

DEFAULT_LANE = Lane.STRATEGIC

# Explicit tags, checked in this order; the persona names are accepted as aliases.
LANE_TAGS: List[Tuple[str, Lane]] = [
    ("@strategic", Lane.STRATEGIC),
    ("@catalyst", Lane.STRATEGIC),
    ("@implementation", Lane.IMPLEMENTATION),
    ("@forge", Lane.IMPLEMENTATION),
]

STRATEGIC_PATTERNS = [
    # Strategic and architectural patterns
    r"\b(architect|architecture|design|strategy|strategic|plan|planning)\b",
    r"\b(should\s+i|how\s+to|what\s+if|which\s+approach)\b",
    r"\b(best\s+practice|recommend|advice|suggest)\b",
    r"\b(structure|organize|pattern)\b",
    r"\b(framework|architecture)\s+(design|pattern|choice)\b",
    r"\b(evaluate|compare|pros\s+and\s+cons|trade-?off)\b",
    r"\b(workflow|process|methodology)\b",
    # Questions about approach
    r"^(should|how|what|which|why|when)\s+",
]

IMPLEMENTATION_PATTERNS = [
    # Implementation and coding patterns
    r"\b(implement|code|create|build|write|develop)\b",
    r"\b(fix|debug|solve|patch|repair)\b",
    r"\b(install|setup|configure|deploy)\b",
    r"\b(function|class|method|api|endpoint)\b",
    r"\b(test|testing|unit\s+test|integration)\b",
    r"\b(refactor|optimize|improve\s+performance)\b",
    # System commands
    r"\b(run|execute|command|npm|git|bash)\b",
    # File operations
    r"\b(file|directory|folder|create\s+file|write\s+to)\b",
]

PatternLike = Union[str, Pattern]


def _compile(pattern: PatternLike) -> Pattern:
    if isinstance(pattern, str):
        return re.compile(pattern, re.IGNORECASE)
    return pattern


class LaneClassifier:
    """
    Pattern-table classifier that maps free text to a `Lane`.

    The tables are ordered lists. Scoring visits the implementation table first and
    the strategic table second, which only matters for the order of entries in
    `LaneAnalysis.matches`; the winner depends on the scores alone.

    Collaborators may append patterns at runtime with `add_pattern`. New patterns
    take part in later classifications only. `get_patterns` hands out copies so
    the internal tables cannot be mutated from outside.
    """

    def __init__(self) -> None:
        self._patterns: Dict[Lane, List[Pattern]] = {
            Lane.IMPLEMENTATION: [_compile(p) for p in IMPLEMENTATION_PATTERNS],
            Lane.STRATEGIC: [_compile(p) for p in STRATEGIC_PATTERNS],
        }
        logger.info("[LaneClassifier] Initialized with %d strategic and %d implementation patterns",
                    len(self._patterns[Lane.STRATEGIC]), len(self._patterns[Lane.IMPLEMENTATION]))

    @staticmethod
    def _normalize(content: str) -> str:
        return content.lower().strip()

    @staticmethod
    def find_tag(content: str) -> Optional[Lane]:
        """Return the lane named by the first explicit tag found in `content`, if any."""
        normalized = content.lower()
        for tag, lane in LANE_TAGS:
            if tag in normalized:
                return lane
        return None

    def _score(self, normalized: str) -> Tuple[Dict[Lane, int], List[Tuple[Lane, str]]]:
        scores = {Lane.STRATEGIC: 0, Lane.IMPLEMENTATION: 0}
        matches: List[Tuple[Lane, str]] = []
        for lane in (Lane.IMPLEMENTATION, Lane.STRATEGIC):
            for pattern in self._patterns[lane]:
                if pattern.search(normalized):
                    scores[lane] += 1
                    matches.append((lane, pattern.pattern))
        return scores, matches

    @staticmethod
    def _winner(scores: Dict[Lane, int]) -> Lane:
        if scores[Lane.IMPLEMENTATION] > scores[Lane.STRATEGIC]:
            return Lane.IMPLEMENTATION
        if scores[Lane.STRATEGIC] > scores[Lane.IMPLEMENTATION]:
            return Lane.STRATEGIC
        return DEFAULT_LANE

    def classify(self, content: str) -> Lane:
        """
        Classify a message into a handling lane.

        Args:
            content (str): The raw inbound text.

        Returns:
            Lane: The tagged lane if the text carries an explicit tag, otherwise the
            lane with the strictly higher pattern score, otherwise `DEFAULT_LANE`.
        """
        tagged = self.find_tag(content)
        if tagged is not None:
            logger.debug("[LaneClassifier] Explicit tag selects %s", tagged.value)
            return tagged

        scores, _ = self._score(self._normalize(content))
        lane = self._winner(scores)
        logger.debug(
            "[LaneClassifier] Scores strategic=%d implementation=%d -> %s",
            scores[Lane.STRATEGIC], scores[Lane.IMPLEMENTATION], lane.value
        )
        return lane

    def analyze(self, content: str) -> LaneAnalysis:
        """
        Explain a classification.

        Scores and per-pattern matches are always computed, even when an explicit
        tag is present, so that callers can see what the tables would have said.
        The reported lane always equals `classify(content)`.

        Args:
            content (str): The raw inbound text.

        Returns:
            LaneAnalysis: winning lane, matched patterns, per-lane scores and the tag (if any).
        """
        tagged = self.find_tag(content)
        scores, matches = self._score(self._normalize(content))
        lane = tagged if tagged is not None else self._winner(scores)
        return LaneAnalysis(lane=lane, matches=matches, scores=scores, tag=tagged)

    def add_pattern(self, lane: Lane, pattern: PatternLike) -> None:
        """
        Append a pattern to a lane's table.

        Args:
            lane (Lane): Table to extend.
            pattern (str | Pattern): A compiled regex, or a string compiled
                case-insensitively.
        """
        compiled = _compile(pattern)
        self._patterns[lane].append(compiled)
        logger.info("[LaneClassifier] Added %s pattern: %s", lane.value, compiled.pattern)

    def get_patterns(self, lane: Lane) -> List[Pattern]:
        return list(self._patterns[lane])
