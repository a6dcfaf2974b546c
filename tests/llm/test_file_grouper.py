import unittest
from unittest.mock import Mock

from commit_splitter.llm.file_grouper import FileGrouper, convert_paths_to_groups
from commit_splitter.llm.fragments import AssistantFragment, ResultFragment, TextBlock
from commit_splitter.llm.ollama_client import LLMError
from commit_splitter.vcs.git_client import FileChange, FileStatus


class StubLLM:
    """Returns canned fragments and records prompts."""

    def __init__(self, fragments=None, error=None):
        self.fragments = fragments or []
        self.error = error
        self.prompts = []

    def complete(self, prompt, max_turns=2):
        self.prompts.append((prompt, max_turns))
        if self.error is not None:
            raise self.error
        return self.fragments


def files(*paths: str):
    return [FileChange(path=p, status=FileStatus.MODIFIED, diff=f"diff for {p}") for p in paths]


def paths_of(groups):
    return [[c.path for c in group] for group in groups]


class TestConvertPathsToGroups(unittest.TestCase):
    def test_unknown_and_duplicate_paths_are_dropped(self) -> None:
        staged = files("a.ts", "b.ts", "c.json")
        groups = convert_paths_to_groups([["a.ts", "ghost.ts", "a.ts"], ["a.ts", "c.json"], ["ghost"]], staged)
        self.assertEqual(paths_of(groups), [["a.ts"], ["c.json"], ["b.ts"]])

    def test_unmentioned_files_form_trailing_group(self) -> None:
        staged = files("a", "b", "c", "d")
        groups = convert_paths_to_groups([["c"]], staged)
        self.assertEqual(paths_of(groups), [["c"], ["a", "b", "d"]])


class TestFileGrouper(unittest.TestCase):
    def test_empty_input_makes_no_call(self) -> None:
        llm = StubLLM()
        outcome = FileGrouper(llm).group_files([])
        self.assertEqual(outcome.groups, [])
        self.assertFalse(outcome.used_fallback)
        self.assertEqual(llm.prompts, [])

    def test_groups_from_prose_wrapped_json(self) -> None:
        llm = StubLLM([ResultFragment('Sure, here you go: [["a.ts","b.ts"],["c.json"]] hope that helps!')])
        outcome = FileGrouper(llm).group_files(files("a.ts", "b.ts", "c.json"))
        self.assertFalse(outcome.used_fallback)
        self.assertIsNone(outcome.reason)
        self.assertEqual(paths_of(outcome.groups), [["a.ts", "b.ts"], ["c.json"]])

    def test_prompt_lists_files_with_preview(self) -> None:
        llm = StubLLM([ResultFragment('[["a.py"]]')])
        staged = [FileChange("a.py", FileStatus.ADDED, "\n".join(f"line{i}" for i in range(10)))]
        FileGrouper(llm, max_diff_preview_lines=3, max_turns=1).group_files(staged)
        prompt, max_turns = llm.prompts[0]
        self.assertEqual(max_turns, 1)
        self.assertIn("- a.py (A)\n  Changes: line0\nline1\nline2", prompt)
        self.assertNotIn("line3", prompt)
        self.assertIn("Return ONLY the JSON array", prompt)

    def test_llm_error_uses_fallback(self) -> None:
        llm = StubLLM(error=LLMError("connection refused"))
        outcome = FileGrouper(llm).group_files(files("config.json", "src/app.ts"))
        self.assertTrue(outcome.used_fallback)
        self.assertEqual(outcome.reason, "connection refused")
        self.assertEqual(paths_of(outcome.groups), [["config.json"], ["src/app.ts"]])

    def test_unexpected_error_uses_fallback(self) -> None:
        llm = Mock()
        llm.complete.side_effect = RuntimeError("boom")
        outcome = FileGrouper(llm).group_files(files("a.py", "b.py"))
        self.assertTrue(outcome.used_fallback)
        self.assertEqual(paths_of(outcome.groups), [["a.py", "b.py"]])

    def test_unparseable_response_uses_fallback(self) -> None:
        llm = StubLLM([AssistantFragment((TextBlock("I would group them by feature."),))])
        outcome = FileGrouper(llm).group_files(files("README.md", "src/app.ts"))
        self.assertTrue(outcome.used_fallback)
        self.assertEqual(outcome.reason, "No valid response found in messages")
        self.assertEqual(paths_of(outcome.groups), [["README.md"], ["src/app.ts"]])

    def test_response_naming_no_staged_file_uses_fallback(self) -> None:
        llm = StubLLM([ResultFragment('[["nope.py"], []]')])
        outcome = FileGrouper(llm).group_files(files("a.py", "b.py"))
        self.assertTrue(outcome.used_fallback)
        self.assertEqual(paths_of(outcome.groups), [["a.py", "b.py"]])

    def test_partition_is_complete_for_any_response(self) -> None:
        staged = files("a.py", "b.py", "docs/c.md", "d.json", "e_test.py")
        responses = [
            "",
            "garbage",
            "[]",
            '[["a.py"]]',
            '[["a.py", "a.py"], ["a.py", "zzz"]]',
            '[["e_test.py", "d.json", "b.py", "docs/c.md", "a.py"]]',
            '[["a.py"], ["b.py"], ["docs/c.md"], ["d.json"], ["e_test.py"], ["extra"]]',
        ]
        for text in responses:
            with self.subTest(response=text):
                outcome = FileGrouper(StubLLM([ResultFragment(text)])).group_files(staged)
                flattened = [c.path for group in outcome.groups for c in group]
                self.assertEqual(sorted(flattened), sorted(c.path for c in staged))
                self.assertTrue(all(group for group in outcome.groups))

    def test_file_with_empty_diff_is_still_grouped(self) -> None:
        staged = [FileChange("secret.txt", FileStatus.MODIFIED, ""), FileChange("a.py", FileStatus.MODIFIED, "x")]
        llm = StubLLM([ResultFragment('[["a.py", "secret.txt"]]')])
        outcome = FileGrouper(llm).group_files(staged)
        self.assertEqual(paths_of(outcome.groups), [["a.py", "secret.txt"]])


if __name__ == "__main__":
    unittest.main()
