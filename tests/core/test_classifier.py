"""
Unit tests for `core/classifier.py` – LaneClassifier behavior in isolation.

The classifier is a pure function of the text and its pattern tables, so these
tests need no mocks. They cover:
- explicit tags (including the persona aliases) overriding keyword scores
- strict-majority scoring with ties going to the strategic lane
- `analyze` reporting scores even when a tag decides the lane
- runtime pattern augmentation and the copy returned by `get_patterns`
"""

import re
import unittest

from core.classifier import DEFAULT_LANE, LaneClassifier
from shared.models import Lane


class TestLaneClassifier(unittest.TestCase):

    def setUp(self):
        self.classifier = LaneClassifier()

    def test_strategic_question_routes_to_strategic(self):
        self.assertIs(self.classifier.classify("How should I structure my application?"), Lane.STRATEGIC)

    def test_implementation_request_routes_to_implementation(self):
        self.assertIs(self.classifier.classify("Implement a function to process data"), Lane.IMPLEMENTATION)
        self.assertIs(self.classifier.classify("Install express with npm"), Lane.IMPLEMENTATION)

    def test_no_matches_defaults_to_strategic(self):
        self.assertIs(self.classifier.classify("hello there"), DEFAULT_LANE)
        self.assertIs(DEFAULT_LANE, Lane.STRATEGIC)

    def test_tie_goes_to_strategic(self):
        # "design" scores strategic once, "function" scores implementation once
        analysis = self.classifier.analyze("design a function")
        self.assertEqual(analysis.scores[Lane.STRATEGIC], analysis.scores[Lane.IMPLEMENTATION])
        self.assertIs(self.classifier.classify("design a function"), Lane.STRATEGIC)

    def test_tag_overrides_scores(self):
        self.assertIs(self.classifier.classify("@forge what should I plan?"), Lane.IMPLEMENTATION)
        self.assertIs(self.classifier.classify("@implementation how to plan the design"), Lane.IMPLEMENTATION)
        self.assertIs(self.classifier.classify("@catalyst implement and fix the code"), Lane.STRATEGIC)
        self.assertIs(self.classifier.classify("@STRATEGIC install npm packages"), Lane.STRATEGIC)

    def test_strategic_tag_checked_first(self):
        self.assertIs(self.classifier.classify("@forge or @strategic?"), Lane.STRATEGIC)

    def test_analyze_agrees_with_classify(self):
        for text in (
            "How should I structure my application?",
            "Implement a function to process data",
            "@forge what should I plan?",
            "hello there",
            "",
        ):
            with self.subTest(text=text):
                self.assertIs(self.classifier.analyze(text).lane, self.classifier.classify(text))

    def test_analyze_scores_even_when_tagged(self):
        analysis = self.classifier.analyze("@forge what should I plan?")
        self.assertIs(analysis.tag, Lane.IMPLEMENTATION)
        self.assertIs(analysis.lane, Lane.IMPLEMENTATION)
        self.assertGreater(analysis.scores[Lane.STRATEGIC], 0)
        self.assertTrue(all(lane is Lane.STRATEGIC for lane, _ in analysis.matches))

    def test_analyze_to_dict(self):
        data = self.classifier.analyze("Implement a function").to_dict()
        self.assertEqual(data["lane"], "implementation")
        self.assertIsNone(data["tag"])
        self.assertEqual(data["scores"]["implementation"], 2)
        self.assertEqual(len(data["matches"]), 2)

    def test_add_pattern_affects_later_classifications(self):
        text = "database schema"
        self.assertIs(self.classifier.classify(text), Lane.STRATEGIC)

        self.classifier.add_pattern(Lane.IMPLEMENTATION, r"database\s+schema")
        self.assertIs(self.classifier.classify(text), Lane.IMPLEMENTATION)

    def test_add_compiled_pattern(self):
        compiled = re.compile(r"mock\s+data", re.IGNORECASE)
        self.classifier.add_pattern(Lane.IMPLEMENTATION, compiled)
        self.assertIn(compiled, self.classifier.get_patterns(Lane.IMPLEMENTATION))

    def test_get_patterns_returns_copy(self):
        patterns = self.classifier.get_patterns(Lane.STRATEGIC)
        original_count = len(patterns)
        patterns.clear()
        self.assertEqual(len(self.classifier.get_patterns(Lane.STRATEGIC)), original_count)

    def test_classification_is_deterministic(self):
        text = "Should I refactor the API endpoint?"
        self.assertEqual({self.classifier.classify(text) for _ in range(5)}, {self.classifier.classify(text)})


if __name__ == "__main__":
    unittest.main()
