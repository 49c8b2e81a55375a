"""Type-to-answer controller: question bank, live question, and answer matching.

High‑level responsibilities:
	* Hold the host's ordered question bank (add / update / delete / clear / import).
	* Track the live question and the per‑question answer log (a shared live feed).
	* Normalize submissions and judge them against the canonical answer.

Matching rules:
	* Canonical answers are stored trimmed and lower‑cased.
	* A canonical answer may list variants: split on "/" when present, otherwise
		on the literal " or ". Each variant is trimmed.
	* ``text`` questions compare by exact (case‑insensitive) membership.
	* ``amount`` questions compare numerically, so "34.5" matches "34.50".

The first correct submission ends the question for everyone: ``current`` is
cleared but ``current_index`` is kept so the host can navigate to the next one.
"""

from __future__ import annotations

import itertools
import re
import uuid
from typing import Dict, List, Optional

from coordinator.errors import InvalidState, OutOfRange

ANSWER_TEXT = "text"
ANSWER_AMOUNT = "amount"
ANSWER_TYPES = (ANSWER_TEXT, ANSWER_AMOUNT)

# Leading number, same leniency as a browser's parseFloat ("12kg" -> 12.0).
_NUMBER_PREFIX = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def _clean_answer(answer: str) -> str:
	"""Normalize a canonical answer or a submission for comparison."""
	if answer is None:
		return ""
	return str(answer).strip().lower()


def parse_amount(value: str) -> Optional[float]:
	"""Parse the leading number of ``value``; None when there is none."""
	match = _NUMBER_PREFIX.match((value or "").strip())
	if not match:
		return None
	return float(match.group(0))


def accepted_variants(canonical: str) -> List[str]:
	"""Split a canonical answer into the list of accepted strings."""
	if "/" in canonical:
		return [a.strip() for a in canonical.split("/")]
	if " or " in canonical:
		return [a.strip() for a in canonical.split(" or ")]
	return [canonical]


def is_correct(canonical: str, submission: str, answer_type: str = ANSWER_TEXT) -> bool:
	"""Judge ``submission`` against ``canonical``.

	Args:
		canonical (str): Stored answer (already lower‑cased), may contain variants.
		submission (str): Raw text typed by the participant.
		answer_type (str): ``text`` or ``amount``.

	Returns:
		bool: True when any accepted variant matches.
	"""
	variants = accepted_variants(_clean_answer(canonical))
	submitted = _clean_answer(submission)
	if answer_type == ANSWER_AMOUNT:
		submitted_num = parse_amount(submitted)
		if submitted_num is None:
			return False
		return any(parse_amount(v) == submitted_num for v in variants)
	return submitted in variants


class QuestionBank:
	"""Ordered, host‑authored list of questions for one room.

	Question shape (also the wire shape sent back to the host):
		{"id": int, "question": str, "answer": str, "answerType": "text" | "amount"}
	"""

	def __init__(self) -> None:
		self.questions: List[Dict[str, object]] = []
		self._ids = itertools.count(1)

	def __len__(self) -> int:
		return len(self.questions)

	def _build(self, question: str, answer: str, answer_type: Optional[str]) -> Dict[str, object]:
		question = str(question).strip() if question is not None else ""
		answer = _clean_answer(answer)
		answer_type = answer_type or ANSWER_TEXT
		if not question or not answer:
			raise InvalidState("Question and answer are required")
		if answer_type not in ANSWER_TYPES:
			raise InvalidState(f"Unknown answer type '{answer_type}'")
		return {"question": question, "answer": answer, "answerType": answer_type}

	def add(self, question: str, answer: str, answer_type: Optional[str] = None) -> Dict[str, object]:
		"""Append a question and return it."""
		entry = {"id": next(self._ids), **self._build(question, answer, answer_type)}
		self.questions.append(entry)
		return entry

	def update(self, question_id: int, question: str, answer: str, answer_type: Optional[str] = None) -> Dict[str, object]:
		"""Replace text / answer / type of an existing question, keeping its id and slot."""
		index = self._index_of(question_id)
		entry = {"id": self.questions[index]["id"], **self._build(question, answer, answer_type)}
		self.questions[index] = entry
		return entry

	def delete(self, question_id: int) -> None:
		index = self._index_of(question_id)
		del self.questions[index]

	def clear(self) -> None:
		self.questions = []

	def import_many(self, items: List[dict]) -> int:
		"""Validate every item first, then append all of them; returns how many."""
		if not isinstance(items, list) or not all(isinstance(i, dict) for i in items):
			raise InvalidState("Import expects a list of question objects")
		built = [self._build(i.get("question"), i.get("answer"), i.get("answerType")) for i in items]
		for fields in built:
			self.questions.append({"id": next(self._ids), **fields})
		return len(built)

	def get(self, index: int) -> Dict[str, object]:
		if not isinstance(index, int) or isinstance(index, bool) or not 0 <= index < len(self.questions):
			raise OutOfRange(f"No question at index {index!r}")
		return self.questions[index]

	def _index_of(self, question_id: int) -> int:
		for i, q in enumerate(self.questions):
			if q["id"] == question_id:
				return i
		raise InvalidState(f"Unknown question id {question_id!r}")

	def to_list(self) -> List[Dict[str, object]]:
		return [dict(q) for q in self.questions]


class QuestionRound:
	"""Live question + answer log for a type room.

	Cycle: no question -> question live (``current`` set) -> settled
	(``current`` cleared, ``current_index`` kept) -> host starts another.
	"""

	def __init__(self) -> None:
		self.bank = QuestionBank()
		self.current: Optional[Dict[str, object]] = None
		self.current_index = -1
		self.log: List[dict] = []

	@property
	def is_live(self) -> bool:
		return self.current is not None

	def start(self, index: int) -> Dict[str, object]:
		"""Make question ``index`` live and clear the answer log."""
		self.current = self.bank.get(index)
		self.current_index = index
		self.log = []
		return self.current

	def judge(self, player_id: str, player_name: str, raw_answer: str, timestamp: int) -> dict:
		"""Judge one attempt, append it to the log, and return the log entry.

		Raises:
			InvalidState: no question is live.
		"""
		if self.current is None:
			raise InvalidState("No live question")
		correct = is_correct(
			str(self.current["answer"]),
			raw_answer,
			str(self.current.get("answerType") or ANSWER_TEXT),
		)
		entry = {
			"id": uuid.uuid4().hex,
			"player": player_name,
			"playerId": player_id,
			"answer": (raw_answer or "").strip(),  # original casing for display
			"isCorrect": correct,
			"timestamp": timestamp,
		}
		self.log.append(entry)
		return entry

	def settle(self) -> None:
		self.current = None

	def reset(self) -> None:
		"""Forget progress (live question, index, log) but keep the bank."""
		self.current = None
		self.current_index = -1
		self.log = []

	def public_state(self) -> dict:
		"""Everything non‑host clients may see; never includes answers."""
		return {
			"question": self.current["question"] if self.current else None,
			"questionIndex": self.current_index,
			"answerType": self.current.get("answerType") if self.current else None,
			"questionCount": len(self.bank),
			"answerLog": list(self.log),
		}


__all__ = [
	"ANSWER_TEXT",
	"ANSWER_AMOUNT",
	"QuestionBank",
	"QuestionRound",
	"accepted_variants",
	"is_correct",
	"parse_amount",
]
