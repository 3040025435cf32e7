"""
Question Selector.

Picks the questions that enter a session from the per-topic pools, using
the session's selection mode.
"""
import logging
import random
from typing import Dict, List, Optional

from mock_interview.models.question import Question
from mock_interview.models.session import SelectionMode

logger = logging.getLogger(__name__)


class QuestionSelector:
    """
    Selects session questions from topic pools.

    Modes:
    - sequential: first N questions of the topics concatenated in request order
    - random: uniform sample of N questions without replacement from the pooled set
    - mixed: floor(N / topics) random questions per topic, then the shortfall
      drawn at random from the whole pool
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        mixed_fill_allow_duplicates: bool = True,
    ):
        """
        Initialize the selector.

        Args:
            rng: Random source (seed it for reproducible selections)
            mixed_fill_allow_duplicates: When True the mixed-mode shortfall is
                drawn from the entire pool and may repeat questions already
                picked for a topic. False restricts the fill to unpicked questions.
        """
        self.rng = rng or random.Random()
        self.mixed_fill_allow_duplicates = mixed_fill_allow_duplicates

    @staticmethod
    def _pool(pools: Dict[str, List[Question]]) -> List[Question]:
        pooled: List[Question] = []
        for questions in pools.values():
            pooled.extend(questions)
        return pooled

    def _sample(self, questions: List[Question], count: int) -> List[Question]:
        return self.rng.sample(questions, min(count, len(questions)))

    def select(
        self,
        pools: Dict[str, List[Question]],
        mode: SelectionMode,
        count: int,
    ) -> List[Question]:
        """
        Select up to ``count`` questions.

        Args:
            pools: Topic name -> questions, in the order topics were requested
            mode: Selection mode
            count: Requested number of questions

        Returns:
            Exactly min(count, pooled size) questions
        """
        pooled = self._pool(pools)

        if mode == SelectionMode.SEQUENTIAL:
            selected = pooled[:count]
        elif mode == SelectionMode.RANDOM:
            selected = self._sample(pooled, count)
        elif mode == SelectionMode.MIXED:
            selected = self._select_mixed(pools, pooled, count)
        else:
            raise ValueError(f"Unsupported selection mode: {mode}")

        logger.debug(f"Selected {len(selected)} of {len(pooled)} questions ({mode.value})")
        return selected

    def _select_mixed(
        self,
        pools: Dict[str, List[Question]],
        pooled: List[Question],
        count: int,
    ) -> List[Question]:
        per_topic = count // len(pools) if pools else 0

        selected: List[Question] = []
        for questions in pools.values():
            selected.extend(self._sample(questions, per_topic))

        target = min(count, len(pooled))
        shortfall = target - len(selected)
        if shortfall <= 0:
            return selected

        if self.mixed_fill_allow_duplicates:
            # Fill draws from the whole pool; repeats of topic picks are possible
            fill = self._sample(pooled, shortfall)
        else:
            remaining = list(pooled)
            for question in selected:
                remaining.remove(question)
            fill = self._sample(remaining, shortfall)

        duplicates = sum(1 for q in fill if q in selected)
        if duplicates:
            logger.info(f"Mixed selection fill repeated {duplicates} already-selected question(s)")

        return selected + fill
