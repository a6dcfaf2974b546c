import re
import unittest

from commit_splitter.session.metadata import (
    SessionMetadata,
    build_commit_message,
    extract_prompt,
    extract_resume_id,
    extract_session_id,
    generate_session_id,
    parse_session_output,
)


class TestCommitMessage(unittest.TestCase):
    def test_title_only_without_metadata(self) -> None:
        self.assertEqual(build_commit_message("feat: x"), "feat: x")

    def test_all_trailers(self) -> None:
        metadata = SessionMetadata(
            session_id="abc123",
            timestamp="2024-01-01T12:00:00+00:00",
            prompt="Fix the bug",
            resumed_from="xyz789",
        )
        self.assertEqual(
            build_commit_message("fix: parser", metadata),
            "fix: parser\n\n"
            "Session-ID: abc123\n"
            'Prompt: "Fix the bug"\n'
            "Time: 2024-01-01T12:00:00+00:00\n"
            "Resumed-From: xyz789",
        )

    def test_empty_trailers_are_omitted(self) -> None:
        metadata = SessionMetadata(session_id="abc", timestamp="t", prompt="", resumed_from=None)
        self.assertEqual(build_commit_message("chore: x", metadata), "chore: x\n\nSession-ID: abc\nTime: t")


class TestOutputParsing(unittest.TestCase):
    def test_session_id_from_stdout_then_stderr(self) -> None:
        self.assertEqual(extract_session_id("Session ID: out-1", "Session ID: err-1"), "out-1")
        self.assertEqual(extract_session_id("nothing", "Session ID: err_2 done"), "err_2")
        self.assertIsNone(extract_session_id("nothing", ""))

    def test_resume_id(self) -> None:
        self.assertEqual(extract_resume_id(["--resume", "abc", "hi"]), "abc")
        self.assertIsNone(extract_resume_id(["--resume"]))
        self.assertIsNone(extract_resume_id(["hi"]))

    def test_prompt(self) -> None:
        self.assertEqual(extract_prompt(["--verbose", "Fix", "the bug"]), "Fix the bug")
        self.assertIsNone(extract_prompt(["--print"]))

    def test_generated_session_id(self) -> None:
        session_id = generate_session_id()
        self.assertRegex(session_id, r"^[0-9a-f]+-[0-9a-f]{6}$")
        self.assertNotEqual(session_id, generate_session_id())

    def test_parse_session_output(self) -> None:
        metadata = parse_session_output("Session ID: s-42\n", "", ["--resume", "s-41"])
        self.assertEqual(metadata.session_id, "s-42")
        self.assertEqual(metadata.resumed_from, "s-41")
        # "s-41" is not a flag, so it is also part of the prompt.
        self.assertEqual(metadata.prompt, "s-41")
        self.assertTrue(re.match(r"\d{4}-\d{2}-\d{2}T", metadata.timestamp))


if __name__ == "__main__":
    unittest.main()
