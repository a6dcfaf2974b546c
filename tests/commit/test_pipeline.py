import shutil
import subprocess
import tempfile
import unittest
from pathlib import Path
from unittest.mock import Mock

from commit_splitter.commit.pipeline import SplitPipeline
from commit_splitter.config.loader import SplitterConfig
from commit_splitter.llm.file_grouper import FileGrouper
from commit_splitter.llm.fragments import ResultFragment
from commit_splitter.llm.ollama_client import LLMError, OllamaClient
from commit_splitter.llm.title_generator import TitleGenerator
from commit_splitter.vcs.git_client import FileChange, FileStatus, GitClient


class UnavailableLLM:
    def __init__(self):
        self.calls = 0

    def complete(self, prompt, max_turns=2):
        self.calls += 1
        raise LLMError("connection refused")


class FakeGit:
    def __init__(self, files):
        self.files = files
        self.ops = []

    def read_staged_changes(self):
        return list(self.files)

    def reset(self):
        self.ops.append("reset")

    def stage_files(self, files):
        self.ops.append(("add", list(files)))

    def has_staged_changes(self):
        return True

    def commit(self, message):
        self.ops.append(("commit", message))


def make_pipeline(git, llm):
    return SplitPipeline(git, FileGrouper(llm), TitleGenerator(llm))


class TestSplitPipeline(unittest.TestCase):
    def test_llm_unavailable_two_files(self) -> None:
        git = FakeGit([
            FileChange("config.json", FileStatus.MODIFIED, "+{}"),
            FileChange("src/app.ts", FileStatus.MODIFIED, "+x"),
        ])
        results = make_pipeline(git, UnavailableLLM()).run()

        self.assertEqual([r.files for r in results], [["config.json"], ["src/app.ts"]])
        self.assertEqual(
            [r.title for r in results],
            ["config: update configuration", "refactor: update code"],
        )
        self.assertTrue(all(r.used_fallback_title for r in results))
        self.assertEqual(
            git.ops,
            [
                "reset", ("add", ["config.json"]), ("commit", "config: update configuration"),
                "reset", ("add", ["src/app.ts"]), ("commit", "refactor: update code"),
            ],
        )

    def test_single_added_readme(self) -> None:
        llm = UnavailableLLM()
        git = FakeGit([FileChange("README.md", FileStatus.ADDED, "# Hello\n")])
        results = make_pipeline(git, llm).run()

        self.assertEqual(len(results), 1)
        self.assertEqual(results[0].title, "docs: update documentation")
        # Only the title call; a single file is never sent for grouping.
        self.assertEqual(llm.calls, 1)

    def test_nothing_staged_touches_nothing(self) -> None:
        llm = UnavailableLLM()
        git = FakeGit([])
        self.assertEqual(make_pipeline(git, llm).run(), [])
        self.assertEqual(git.ops, [])
        self.assertEqual(llm.calls, 0)

    def test_file_without_diff_is_committed(self) -> None:
        llm = Mock()
        llm.complete.side_effect = [
            [ResultFragment('[["secret.txt", "a.py"]]')],
            [ResultFragment("fix: update secrets handling")],
        ]
        git = FakeGit([
            FileChange("a.py", FileStatus.MODIFIED, "+x"),
            FileChange("secret.txt", FileStatus.MODIFIED, ""),
        ])
        results = make_pipeline(git, llm).run()
        self.assertEqual(results[0].files, ["secret.txt", "a.py"])
        self.assertEqual(results[0].title, "fix: update secrets handling")

    def test_from_config_wires_settings(self) -> None:
        config = SplitterConfig(model="qwen", port=1234, max_turns=1, max_commit_title_length=60)
        pipeline = SplitPipeline.from_config(FakeGit([]), config)
        self.assertIsInstance(pipeline.grouper.llm_client, OllamaClient)
        self.assertEqual(pipeline.grouper.llm_client.model, "qwen")
        self.assertEqual(pipeline.grouper.llm_client.port, 1234)
        self.assertEqual(pipeline.grouper.max_turns, 1)
        self.assertEqual(pipeline.title_generator.max_commit_title_length, 60)


@unittest.skipUnless(shutil.which("git"), "git is not installed")
class TestSplitPipelineWithGit(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.git("init", "-q")
        self.git("config", "user.name", "Test")
        self.git("config", "user.email", "test@example.com")
        self.git("config", "commit.gpgsign", "false")
        (self.root / "old.txt").write_text("hello\n")
        self.git("add", "old.txt")
        self.git("commit", "-q", "-m", "init")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def git(self, *args: str) -> str:
        return subprocess.run(
            ["git"] + list(args), cwd=self.root, check=True, capture_output=True, text=True
        ).stdout

    def test_staged_rename_is_committed_whole(self) -> None:
        self.git("mv", "old.txt", "new.txt")
        results = make_pipeline(GitClient(self.root), UnavailableLLM()).run()

        self.assertEqual([r.files for r in results], [["new.txt"]])
        self.assertEqual(self.git("status", "--porcelain"), "")
        self.assertEqual(self.git("ls-tree", "--name-only", "HEAD").split(), ["new.txt"])


if __name__ == "__main__":
    unittest.main()
