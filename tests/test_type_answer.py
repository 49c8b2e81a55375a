"""
Type-answer tests: answer matching, question bank editing and live questions.
"""

import json

import pytest

from conftest import WALL_CLOCK_MS
from coordinator import events
from coordinator.errors import InvalidState, OutOfRange
from coordinator.events import events_named
from coordinator.type_answer import QuestionBank, QuestionRound, accepted_variants, is_correct, parse_amount


class TestMatching:
    @pytest.mark.parametrize(
        "canonical, submission, answer_type, expected",
        [
            ("34.50", "34.5", "amount", True),
            ("34.50", "34.5", "text", False),
            ("red/crimson", "Crimson", "text", True),
            ("red/crimson", "  RED ", "text", True),
            ("red/crimson", "scarlet", "text", False),
            ("paris or lyon", "Lyon", "text", True),
            ("12", "12kg", "amount", True),
            ("12", "twelve", "amount", False),
            ("10/ten", "10.0", "amount", True),
            ("blue", "blu", "text", False),
        ],
    )
    def test_is_correct(self, canonical, submission, answer_type, expected):
        assert is_correct(canonical, submission, answer_type) is expected

    def test_slash_takes_precedence_over_or(self):
        assert accepted_variants("a or b/c") == ["a or b", "c"]

    def test_parse_amount(self):
        assert parse_amount("  -3.25e2 ") == -325.0
        assert parse_amount(".5") == 0.5
        assert parse_amount("abc") is None
        assert parse_amount("") is None


class TestQuestionBank:
    def test_add_normalizes_answer(self):
        bank = QuestionBank()
        q = bank.add("  Capital of France? ", "  PARIS ")
        assert q == {"id": 1, "question": "Capital of France?", "answer": "paris", "answerType": "text"}

    def test_update_keeps_id_and_slot(self):
        bank = QuestionBank()
        bank.add("Q1", "a")
        second = bank.add("Q2", "b")
        bank.add("Q3", "c")
        bank.update(second["id"], "Q2 edited", "B2", "amount")
        assert [q["question"] for q in bank.to_list()] == ["Q1", "Q2 edited", "Q3"]
        assert bank.to_list()[1] == {"id": 2, "question": "Q2 edited", "answer": "b2", "answerType": "amount"}

    def test_ids_never_reused(self):
        bank = QuestionBank()
        bank.add("Q1", "a")
        bank.delete(1)
        assert bank.add("Q2", "b")["id"] == 2

    @pytest.mark.parametrize(
        "question, answer, answer_type",
        [("", "a", None), ("Q", "  ", None), ("Q", "a", "multiple_choice"), (None, "a", None)],
    )
    def test_invalid_questions_rejected(self, question, answer, answer_type):
        with pytest.raises(InvalidState):
            QuestionBank().add(question, answer, answer_type)

    def test_unknown_id(self):
        with pytest.raises(InvalidState):
            QuestionBank().delete(7)

    def test_import_is_all_or_nothing(self):
        bank = QuestionBank()
        with pytest.raises(InvalidState):
            bank.import_many([{"question": "ok", "answer": "yes"}, {"question": "", "answer": "no"}])
        assert len(bank) == 0
        assert bank.import_many([{"question": "Q1", "answer": "a"}, {"question": "Q2", "answer": "2", "answerType": "amount"}]) == 2
        assert [q["id"] for q in bank.to_list()] == [1, 2]

    def test_get_bounds(self):
        bank = QuestionBank()
        bank.add("Q1", "a")
        assert bank.get(0)["question"] == "Q1"
        for bad in (-1, 1, None, True, "0"):
            with pytest.raises(OutOfRange):
                bank.get(bad)


class TestQuestionRound:
    def test_judge_requires_live_question(self):
        with pytest.raises(InvalidState):
            QuestionRound().judge("p", "P", "x", 1)

    def test_settle_keeps_index(self):
        rnd = QuestionRound()
        rnd.bank.add("Q1", "a")
        rnd.start(0)
        rnd.settle()
        assert rnd.is_live is False
        assert rnd.current_index == 0

    def test_log_keeps_original_casing(self):
        rnd = QuestionRound()
        rnd.bank.add("Q1", "paris")
        rnd.start(0)
        entry = rnd.judge("p", "Pat", "  PaRiS ", 42)
        assert entry["answer"] == "PaRiS"
        assert entry["isCorrect"] is True
        assert entry["timestamp"] == 42
        assert rnd.log == [entry]


# ---------------------------------------------------------------------------
# Through the coordinator
# ---------------------------------------------------------------------------


def load_bank(coordinator, code, *items):
    for question, answer, answer_type in items:
        coordinator.add_question("alice", code, question, answer, answer_type)


class TestBankCommands:
    def test_bank_events_go_to_host_only(self, coordinator, type_room):
        batch = coordinator.add_question("alice", type_room, "Capital of France?", "Paris")
        (added,) = batch
        assert added.event == events.QUESTION_ADDED
        assert added.recipients == ("alice",)
        assert added.payload["questions"][0]["answer"] == "paris"

    def test_non_host_cannot_edit(self, coordinator, type_room):
        assert coordinator.add_question("bob", type_room, "Q", "a") == []
        assert len(coordinator.registry.get(type_room).questions.bank) == 0

    def test_bank_locked_while_active(self, coordinator, type_room):
        load_bank(coordinator, type_room, ("Q1", "a", None))
        coordinator.start_game("alice", type_room)
        assert coordinator.add_question("alice", type_room, "Q2", "b") == []
        assert coordinator.update_question("alice", type_room, 1, "Q1x", "a") == []
        assert coordinator.delete_question("alice", type_room, 1) == []
        assert coordinator.clear_questions("alice", type_room) == []
        assert coordinator.import_questions("alice", type_room, [{"question": "Q", "answer": "a"}]) == []
        assert len(coordinator.registry.get(type_room).questions.bank) == 1

    def test_edit_after_game_ends(self, coordinator, type_room):
        load_bank(coordinator, type_room, ("Q1", "a", None))
        coordinator.start_game("alice", type_room)
        coordinator.end_game("alice", type_room)
        (updated,) = coordinator.update_question("alice", type_room, 1, "Q1x", "b", "text")
        assert updated.event == events.QUESTION_UPDATED
        assert updated.payload["questions"] == [{"id": 1, "question": "Q1x", "answer": "b", "answerType": "text"}]

    def test_delete_clear_and_import(self, coordinator, type_room):
        load_bank(coordinator, type_room, ("Q1", "a", None), ("Q2", "b", None))
        (deleted,) = coordinator.delete_question("alice", type_room, 1)
        assert [q["id"] for q in deleted.payload["questions"]] == [2]
        (cleared,) = coordinator.clear_questions("alice", type_room)
        assert cleared.event == events.QUESTIONS_CLEARED
        assert cleared.payload == {"questions": []}
        (imported,) = coordinator.import_questions("alice", type_room, [
            {"question": "Q3", "answer": "c"},
            {"question": "Q4", "answer": "4", "answerType": "amount"},
        ])
        assert imported.event == events.QUESTIONS_IMPORTED
        assert [q["question"] for q in imported.payload["questions"]] == ["Q3", "Q4"]

    def test_bank_commands_ignored_in_other_modes(self, coordinator, buzzer_room):
        assert coordinator.add_question("alice", buzzer_room, "Q", "a") == []


class TestLiveQuestion:
    def test_question_started_hides_answer(self, coordinator, type_room):
        load_bank(coordinator, type_room, ("Capital of France?", "Paris", None))
        (started,) = coordinator.start_question("alice", type_room, 0)
        assert started.event == events.QUESTION_STARTED
        assert set(started.recipients) == {"alice", "bob", "carol"}
        assert started.payload == {
            "question": "Capital of France?",
            "questionIndex": 0,
            "answerType": "text",
            "answerLog": [],
        }

    def test_out_of_range_index_ignored(self, coordinator, type_room):
        load_bank(coordinator, type_room, ("Q1", "a", None))
        assert coordinator.start_question("alice", type_room, 1) == []
        assert coordinator.start_question("alice", type_room, -1) == []
        assert coordinator.start_question("bob", type_room, 0) == []

    def test_incorrect_answer_is_private_and_retryable(self, coordinator, type_room):
        load_bank(coordinator, type_room, ("Capital of France?", "Paris", None))
        coordinator.start_game("alice", type_room)
        coordinator.start_question("alice", type_room, 0)

        batch = coordinator.submit_answer("bob", type_room, "Lyon")
        (attempt,) = events_named(batch, events.ANSWER_ATTEMPT)
        assert set(attempt.recipients) == {"alice", "bob", "carol"}
        assert attempt.payload["answerEntry"]["isCorrect"] is False
        assert attempt.payload["answerEntry"]["timestamp"] == WALL_CLOCK_MS
        (wrong,) = events_named(batch, events.INCORRECT_ANSWER)
        assert wrong.recipients == ("bob",)
        assert wrong.payload == {"answer": "Lyon"}

        batch = coordinator.submit_answer("bob", type_room, "paris")
        assert events_named(batch, events.CORRECT_ANSWER)

    def test_first_correct_answer_settles_question(self, coordinator, type_room):
        room = coordinator.registry.get(type_room)
        load_bank(coordinator, type_room, ("Capital of France?", "Paris", None), ("2+2?", "4", "amount"))
        coordinator.start_game("alice", type_room)
        coordinator.start_question("alice", type_room, 0)

        batch = coordinator.submit_answer("carol", type_room, "  PARIS ")
        (correct,) = events_named(batch, events.CORRECT_ANSWER)
        assert correct.payload["player"]["name"] == "Carol"
        assert correct.payload["player"]["score"] == 1
        assert correct.payload["player"]["answered"] is True
        assert correct.payload["player"]["answerTime"] == WALL_CLOCK_MS
        assert correct.payload["answer"] == "paris"
        assert correct.payload["correctAnswer"] == "paris"
        assert [e["answer"] for e in correct.payload["answerLog"]] == ["PARIS"]
        assert room.questions.current is None
        assert room.questions.current_index == 0

        # too late
        assert coordinator.submit_answer("bob", type_room, "Paris") == []
        assert room.get_participant("bob").score == 0

        coordinator.start_question("alice", type_room, 1)
        assert room.get_participant("carol").answered is False
        coordinator.submit_answer("bob", type_room, "4.0")
        assert room.get_participant("bob").score == 1

    def test_practice_rounds_do_not_score(self, coordinator, type_room):
        room = coordinator.registry.get(type_room)
        load_bank(coordinator, type_room, ("Q1", "a", None))
        coordinator.start_question("alice", type_room, 0)
        batch = coordinator.submit_answer("bob", type_room, "A")
        assert events_named(batch, events.CORRECT_ANSWER)
        assert room.get_participant("bob").score == 0

    def test_no_live_question_ignored(self, coordinator, type_room):
        assert coordinator.submit_answer("bob", type_room, "anything") == []

    def test_state_never_leaks_answers(self, coordinator, type_room):
        load_bank(coordinator, type_room, ("Secret question", "Zanzibar", None))
        coordinator.start_question("alice", type_room, 0)

        (bob_view,) = coordinator.room_state("bob", type_room)
        assert "zanzibar" not in json.dumps(bob_view.payload).lower()
        assert bob_view.payload["question"] == "Secret question"
        assert "questions" not in bob_view.payload

        (host_view,) = coordinator.room_state("alice", type_room)
        assert host_view.payload["questions"][0]["answer"] == "zanzibar"
