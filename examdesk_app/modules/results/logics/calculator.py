from typing import Any, Sequence


class ScoreCalculator:
    """
    Grades an answer sheet against a quiz's questions.
    """

    @staticmethod
    def is_correct(answer: Any, correct_answer: int, option_count: int) -> bool:
        # bool is an int subclass; True must not count as option 1
        if isinstance(answer, bool) or not isinstance(answer, int):
            return False
        if not 0 <= answer < option_count:
            return False
        return answer == correct_answer

    @classmethod
    def calculate(cls, questions: Sequence, answers: Any) -> int:
        """
        Sum the points of every question answered correctly.

        `answers[i]` is the chosen option index for question i. Missing,
        null, non-integer or out-of-range entries never match; a malformed
        answer sheet scores zero instead of raising.
        """
        if not isinstance(answers, (list, tuple)):
            return 0

        total = 0
        for index, question in enumerate(questions):
            if index >= len(answers):
                break
            options = question.options or []
            if cls.is_correct(answers[index], question.correct_answer, len(options)):
                total += question.points or 1
        return total
