"""
Best Attempt Reduction
======================

Screens raw attempt feeds for data-quality problems and collapses repeated
attempts into one best attempt per (student, quiz).
"""

import logging
from typing import Dict, Iterable, List, Tuple

from analytics.categories import is_valid_percentage
from models.course_models import QuizAttempt

logger = logging.getLogger(__name__)

AttemptKey = Tuple[str, str]


def screen_attempts(attempts: Iterable[QuizAttempt]) -> Tuple[List[QuizAttempt], List[QuizAttempt]]:
    """
    Splits a feed into (accepted, rejected). Records with a percentage outside
    [0, 100] are rejected and logged; they are never clamped.
    """
    accepted, rejected = [], []
    for attempt in attempts:
        if is_valid_percentage(attempt.percentage):
            accepted.append(attempt)
        else:
            logger.warning(
                "Rejected attempt %s (student=%s, quiz=%s): percentage %r outside [0, 100]",
                attempt.attempt_id, attempt.student_id, attempt.quiz_id, attempt.percentage
            )
            rejected.append(attempt)
    return accepted, rejected


def reduce_best_attempts(attempts: Iterable[QuizAttempt]) -> Dict[AttemptKey, QuizAttempt]:
    """
    Keeps the attempt with the strictly greatest percentage for each
    (student_id, quiz_id). On a tie the first attempt in input order wins.
    """
    best: Dict[AttemptKey, QuizAttempt] = {}
    for attempt in attempts:
        key = (attempt.student_id, attempt.quiz_id)
        current = best.get(key)
        if current is None or attempt.percentage > current.percentage:
            best[key] = attempt
    return best
