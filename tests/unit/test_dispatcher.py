import os
import tempfile
import unittest
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from file_assistant.commands import Action
from file_assistant.dispatcher import (
    ACTION_CANCELLED,
    NO_CONTEXT_MAP,
    NO_FILES_FOUND,
    NO_LABELED_IMAGES,
    NO_PREVIOUS_LIST,
    ORGANIZATION_CANCELLED,
    Dispatcher,
    is_valid_label,
)
from file_assistant.grouping import DIRECTORY_NOT_FOUND, IMAGE_ANALYSIS_HEADER


class FakeContext:
    """Labels images from a fixed table and records resets."""

    def __init__(self, labels):
        self.labels = labels
        self.calls = []

    def reset(self):
        self.calls.append("reset")

    def label(self, image_path):
        name = Path(image_path).name
        self.calls.append(name)
        return self.labels.get(name, "error_inference_failed")


class FakeLabeler:
    def __init__(self, labels):
        self.context = FakeContext(labels)
        self.sessions = 0

    @contextmanager
    def session(self):
        self.sessions += 1
        yield self.context


class DispatcherTestCase(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.prompts = []
        self.answers = []

    def tearDown(self):
        self._tmp.cleanup()

    def confirm(self, description):
        self.prompts.append(description)
        return self.answers.pop(0) if self.answers else True

    def make_dispatcher(self, labeler=None):
        return Dispatcher(confirm=self.confirm, labeler=labeler, known_dirs={"inbox": self.root})

    def touch(self, *names):
        for name in names:
            (self.root / name).write_text(name)

    def snapshot(self):
        return sorted(str(p.relative_to(self.root)) for p in self.root.rglob("*"))


class TestDispatch(DispatcherTestCase):
    def test_every_action_has_a_handler(self):
        dispatcher = self.make_dispatcher()
        for action in Action:
            if action is Action.UNRECOGNIZED:
                continue
            self.assertTrue(dispatcher.handles(action), action)

    def test_unrecognized_is_echoed(self):
        dispatcher = self.make_dispatcher()
        self.assertEqual(dispatcher.dispatch("I can't do that."), "Unrecognized command: I can't do that.")
        self.assertEqual(self.prompts, [])

    def test_declined_confirmation_changes_nothing(self):
        self.touch("a.txt", "b.md")
        (self.root / "sub").mkdir()
        before = self.snapshot()
        dispatcher = self.make_dispatcher()

        for raw in (
            f"[ORGANIZE FILES] {self.root}",
            f"[ORGANIZE FOLDERS BY SIZE] {self.root}",
            f"[ORGANIZE FOLDERS BY PATTERN] {self.root} sub",
            f"[ORGANIZE ALL BY TYPE] {self.root}",
            f"[MOVE FILE] {self.root / 'a.txt'} {self.root / 'sub'}",
        ):
            self.answers = [False]
            self.assertEqual(dispatcher.dispatch(raw), ACTION_CANCELLED, raw)

        self.assertEqual(self.snapshot(), before)

    def test_alias_is_resolved_before_confirmation(self):
        self.touch("a.txt")
        dispatcher = self.make_dispatcher()

        result = dispatcher.dispatch("[CATEGORIZE FILES] Inbox")

        self.assertEqual(result, ".txt:\n  a.txt\n")
        self.assertIn(str(self.root), self.prompts[0])

    def test_operation_errors_are_reported(self):
        dispatcher = self.make_dispatcher()

        def failing(command):
            raise PermissionError("denied")

        dispatcher._handlers[Action.CATEGORIZE_FILES] = failing
        self.assertEqual(dispatcher.dispatch("[CATEGORIZE FILES] x"), "Operation failed: denied")


class TestListAndCount(DispatcherTestCase):
    def test_count_before_list(self):
        dispatcher = self.make_dispatcher()
        self.assertEqual(dispatcher.dispatch("[COUNT PREVIOUS FILES]"), NO_PREVIOUS_LIST)

    def test_list_then_count(self):
        self.touch("b.txt", "a.txt")
        (self.root / "folder").mkdir()
        dispatcher = self.make_dispatcher()

        result = dispatcher.dispatch(f'[LIST FILES] "{self.root}"')

        self.assertEqual(result, f"{self.root / 'a.txt'}\n{self.root / 'b.txt'}")
        self.assertEqual(self.prompts, [])
        self.assertEqual(dispatcher.dispatch("[COUNT PREVIOUS FILES]"), "There are 2 files.")

    def test_list_missing_directory_records_empty_list(self):
        dispatcher = self.make_dispatcher()
        self.assertEqual(dispatcher.dispatch(f"[LIST FILES] {self.root / 'nope'}"), NO_FILES_FOUND)
        self.assertEqual(dispatcher.previous_files, [])
        self.assertEqual(dispatcher.dispatch("[COUNT PREVIOUS FILES]"), "There are 0 files.")


class TestArgumentValidation(DispatcherTestCase):
    def test_blank_directory_is_rejected_without_touching_cwd(self):
        self.touch("a.txt", "b.png")
        before = self.snapshot()
        cwd = os.getcwd()
        os.chdir(self.root)
        self.addCleanup(os.chdir, cwd)
        dispatcher = self.make_dispatcher(FakeLabeler({"b.png": "pet"}))
        dispatcher.last_image_context_map = {str(self.root / "b.png"): "pet"}

        for tag in (
            "[LIST FILES]",
            "[ORGANIZE FILES]",
            "[CATEGORIZE FILES]",
            "[CATEGORIZE BY NAME CONTEXT]",
            "[CATEGORIZE BY CONTENT CONTEXT]",
            "[CATEGORIZE IMAGES BY CONTEXT]",
            "[ORGANIZE IMAGES BY CONTEXT]",
            "[ORGANIZE IMAGES BY DATE AND CONTEXT]",
            "[CATEGORIZE FOLDERS BY SIZE]",
            "[CATEGORIZE ALL BY TYPE]",
            "[ORGANIZE ALL BY TYPE]",
        ):
            for raw in (tag, f'{tag} ""', f"{tag}   "):
                expected = f"Invalid {tag.strip('[]').lower()} command."
                self.assertEqual(dispatcher.dispatch(raw), expected, raw)

        self.assertEqual(self.prompts, [])
        self.assertEqual(self.snapshot(), before)
        self.assertIsNone(dispatcher.previous_files)

    def test_invalid_move(self):
        dispatcher = self.make_dispatcher()
        self.assertEqual(dispatcher.dispatch("[MOVE FILE] /tmp/a.txt"), "Invalid move command.")
        self.assertEqual(self.prompts, [])

    def test_invalid_pattern_commands(self):
        dispatcher = self.make_dispatcher()
        self.assertEqual(dispatcher.dispatch("[ORGANIZE FOLDERS BY PATTERN] /data"),
                         "Invalid organize folders by pattern command.")
        self.assertEqual(dispatcher.dispatch("[CATEGORIZE FOLDERS BY PATTERN]"),
                         "Invalid categorize folders by pattern command.")

    def test_invalid_size_command(self):
        dispatcher = self.make_dispatcher()
        self.assertEqual(dispatcher.dispatch("[ORGANIZE FOLDERS BY SIZE]"),
                         "Invalid organize folders by size command.")

    def test_size_thresholds_fall_back_to_defaults(self):
        (self.root / "big").mkdir()
        for i in range(3):
            (self.root / "big" / f"{i}.txt").touch()
        dispatcher = self.make_dispatcher()

        dispatcher.dispatch(f"[ORGANIZE FOLDERS BY SIZE] {self.root} 1 lots")

        self.assertIn("(small: 1, large: 20)", self.prompts[0])
        self.assertTrue((self.root / "folders_small" / "big").is_dir())

    def test_move_file(self):
        self.touch("a.txt")
        (self.root / "dest").mkdir()
        dispatcher = self.make_dispatcher()

        result = dispatcher.dispatch(f"[MOVE FILE] {self.root / 'a.txt'} {self.root / 'dest'}")

        self.assertEqual(result, f"Moved a.txt to {self.root / 'dest'}")


class TestImageCommands(DispatcherTestCase):
    def test_organize_without_context_map(self):
        dispatcher = self.make_dispatcher()
        self.assertEqual(dispatcher.dispatch(f"[ORGANIZE IMAGES BY CONTEXT] {self.root}"), NO_CONTEXT_MAP)
        self.assertEqual(self.prompts, [])

    def test_categorize_without_vision_groups_by_extension(self):
        self.touch("a.png", "b.jpg")
        dispatcher = self.make_dispatcher()

        result = dispatcher.dispatch(f"[CATEGORIZE IMAGES BY CONTEXT] {self.root}")

        self.assertEqual(result, ".png:\n  a.png\n.jpg:\n  b.jpg\n")
        self.assertIsNone(dispatcher.last_image_context_map)

    def test_labeling_resets_per_image_and_skips_errors(self):
        self.touch("cat.jpg", "blur.png", "dog.jpg", "notes.txt")
        labeler = FakeLabeler({"cat.jpg": " animal \n", "dog.jpg": "animal", "blur.png": "unknown_empty_label"})
        dispatcher = self.make_dispatcher(labeler)
        self.answers = [True, False]

        result = dispatcher.dispatch(f"[CATEGORIZE IMAGES BY CONTEXT] {self.root}")

        self.assertTrue(result.startswith(IMAGE_ANALYSIS_HEADER))
        self.assertIn("Successfully labeled 2 image(s).", result)
        self.assertTrue(result.endswith(ORGANIZATION_CANCELLED))
        self.assertEqual(labeler.sessions, 1)
        self.assertEqual(
            labeler.context.calls,
            ["reset", "blur.png", "reset", "cat.jpg", "reset", "dog.jpg"],
        )
        label_map = dispatcher.last_image_context_map
        self.assertEqual(dict(label_map), {
            str(self.root / "cat.jpg"): "animal",
            str(self.root / "dog.jpg"): "animal",
        })
        self.assertTrue((self.root / "cat.jpg").exists())

    def test_categorize_then_organize(self):
        self.touch("cat.jpg", "sea.png")
        labeler = FakeLabeler({"cat.jpg": "pet", "sea.png": "beach"})
        dispatcher = self.make_dispatcher(labeler)
        self.answers = [True, False, True]

        dispatcher.dispatch(f"[CATEGORIZE IMAGES BY CONTEXT] {self.root}")
        result = dispatcher.dispatch(f"[ORGANIZE IMAGES BY CONTEXT] {self.root}")

        self.assertEqual(result, f"Organized 2 images by context in {self.root}.")
        self.assertTrue((self.root / "pet" / "cat.jpg").exists())
        self.assertTrue((self.root / "beach" / "sea.png").exists())

    def test_categorize_organizes_after_second_confirmation(self):
        self.touch("cat.jpg")
        dispatcher = self.make_dispatcher(FakeLabeler({"cat.jpg": "pet"}))

        result = dispatcher.dispatch(f"[CATEGORIZE IMAGES BY CONTEXT] {self.root}")

        self.assertEqual(len(self.prompts), 2)
        self.assertTrue(result.endswith(f"Organized 1 images by context in {self.root}."))
        self.assertTrue((self.root / "pet" / "cat.jpg").exists())

    def test_categorize_with_no_valid_labels(self):
        self.touch("cat.jpg")
        dispatcher = self.make_dispatcher(FakeLabeler({}))

        result = dispatcher.dispatch(f"[CATEGORIZE IMAGES BY CONTEXT] {self.root}")

        self.assertTrue(result.endswith(NO_LABELED_IMAGES))
        self.assertEqual(len(self.prompts), 1)
        self.assertFalse(dispatcher.last_image_context_map)

    def test_declined_categorize_clears_previous_map(self):
        self.touch("cat.jpg")
        dispatcher = self.make_dispatcher(FakeLabeler({"cat.jpg": "pet"}))
        self.answers = [True, False, False]

        dispatcher.dispatch(f"[CATEGORIZE IMAGES BY CONTEXT] {self.root}")
        self.assertTrue(dispatcher.last_image_context_map)
        self.assertEqual(dispatcher.dispatch(f"[CATEGORIZE IMAGES BY CONTEXT] {self.root}"), ACTION_CANCELLED)
        self.assertIsNone(dispatcher.last_image_context_map)

    def test_organize_by_date_with_labels(self):
        self.touch("cat.jpg", "x.png")
        ts = datetime(2023, 10, 20, 12, 0).timestamp()
        for name in ("cat.jpg", "x.png"):
            os.utime(self.root / name, (ts, ts))
        dispatcher = self.make_dispatcher(FakeLabeler({"cat.jpg": "pet"}))

        result = dispatcher.dispatch(f"[ORGANIZE IMAGES BY DATE AND CONTEXT] {self.root}")

        self.assertEqual(
            result,
            f"Organized 2 image files into date and context subfolders in {self.root}.",
        )
        self.assertTrue((self.root / "2023-10-20" / "pet" / "cat.jpg").exists())
        self.assertTrue((self.root / "2023-10-20" / "png" / "x.png").exists())

    def test_unexpected_labeler_error_is_reported(self):
        self.touch("a.png")

        class BrokenContext(FakeContext):
            def label(self, image_path):
                raise ValueError("no valid part in response")

        labeler = FakeLabeler({})
        labeler.context = BrokenContext({})
        dispatcher = self.make_dispatcher(labeler)

        result = dispatcher.dispatch(f"[CATEGORIZE IMAGES BY CONTEXT] {self.root}")

        self.assertEqual(result, "Operation failed: no valid part in response")
        self.assertTrue((self.root / "a.png").exists())

    def test_organize_by_date_missing_directory(self):
        dispatcher = self.make_dispatcher()
        result = dispatcher.dispatch(f"[ORGANIZE IMAGES BY DATE AND CONTEXT] {self.root / 'nope'}")
        self.assertEqual(result, DIRECTORY_NOT_FOUND)


class TestIsValidLabel(unittest.TestCase):
    def test_markers(self):
        self.assertTrue(is_valid_label("beach"))
        self.assertFalse(is_valid_label(""))
        self.assertFalse(is_valid_label("   "))
        self.assertFalse(is_valid_label(None))
        self.assertFalse(is_valid_label("Error_image_load"))
        self.assertFalse(is_valid_label("unknown_empty_label"))


if __name__ == "__main__":
    unittest.main()
