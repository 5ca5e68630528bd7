#!/usr/bin/env python3
"""
Analysis pipeline orchestration.

Provides framework for running multiple classification stages on candidate
events with pluggable stages and dependency-ordered execution.
"""

from abc import ABC, abstractmethod
from typing import List, Dict, Any, Optional
from datetime import datetime
import logging

from ..models.event import CandidateEvent

logger = logging.getLogger(__name__)


class AnalysisStage(ABC):
    """Abstract base class for analysis pipeline stages."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize analysis stage.

        Args:
            config: Stage-specific configuration
        """
        self.config = config or {}
        self.name = self.__class__.__name__

    @abstractmethod
    def process(self, candidates: List[CandidateEvent], context: Dict[str, Any]) -> Dict[str, Any]:
        """
        Process candidates through this analysis stage.

        Args:
            candidates: Candidate events entering the pipeline
            context: Shared context from previous stages

        Returns:
            Results dictionary to be merged into context
        """
        pass

    def can_process(self, candidates: List[CandidateEvent], context: Dict[str, Any]) -> bool:
        """
        Check if this stage can process the given candidates.

        Args:
            candidates: Candidates to check
            context: Current context

        Returns:
            True if stage can process, False otherwise
        """
        return True

    def get_dependencies(self) -> List[str]:
        """
        Get list of stage names this stage depends on.

        Returns:
            List of stage names that must run before this one
        """
        return []


class AnalysisPipeline:
    """
    Analysis pipeline that orchestrates multiple analysis stages.

    Stages run sequentially in dependency order. A stage that raises is
    logged and recorded in the context; later stages still run.
    """

    def __init__(self):
        """Initialize empty pipeline."""
        self.stages: Dict[str, AnalysisStage] = {}
        self.stage_order: List[str] = []

    def add_stage(self, stage: AnalysisStage, name: Optional[str] = None) -> 'AnalysisPipeline':
        """
        Add an analysis stage to the pipeline.

        Args:
            stage: Analysis stage to add
            name: Optional custom name (uses class name if not provided)

        Returns:
            Self for method chaining
        """
        stage_name = name or stage.__class__.__name__
        self.stages[stage_name] = stage

        self._resolve_stage_order()

        logger.debug(f"Added analysis stage: {stage_name}")
        return self

    def run(self, candidates: List[CandidateEvent], initial_context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Run the analysis pipeline on candidates.

        Args:
            candidates: Candidate events to classify
            initial_context: Initial context for pipeline

        Returns:
            Final context with every stage's results merged in
        """
        context = dict(initial_context or {})
        if not candidates:
            logger.warning("No candidates provided to analysis pipeline")
            return context

        context['pipeline_start_time'] = datetime.now()
        context['candidates_count'] = len(candidates)

        logger.info(f"Starting analysis pipeline with {len(candidates)} candidates")

        for stage_name in self.stage_order:
            stage = self.stages[stage_name]

            if not stage.can_process(candidates, context):
                logger.info(f"Skipping stage {stage_name} - nothing to process")
                continue

            try:
                logger.debug(f"Running analysis stage: {stage_name}")
                stage_start = datetime.now()

                stage_results = stage.process(candidates, context)

                if stage_results:
                    context.update(stage_results)

                stage_duration = (datetime.now() - stage_start).total_seconds()
                context[f'{stage_name}_duration'] = stage_duration

                logger.info(f"Completed stage {stage_name} in {stage_duration:.2f}s")

            except Exception as e:
                logger.error(f"Stage {stage_name} failed: {e}", exc_info=True)
                context[f'{stage_name}_error'] = str(e)

        pipeline_duration = (datetime.now() - context['pipeline_start_time']).total_seconds()
        context['pipeline_duration'] = pipeline_duration
        context['pipeline_completed'] = True

        logger.info(f"Analysis pipeline completed in {pipeline_duration:.2f}s")
        return context

    def _resolve_stage_order(self):
        """Resolve stage execution order based on dependencies."""
        # Simple topological sort
        visited = set()
        temp_visited = set()
        order = []

        def visit(stage_name: str):
            if stage_name in temp_visited:
                raise ValueError(f"Circular dependency detected involving {stage_name}")

            if stage_name in visited:
                return

            temp_visited.add(stage_name)

            stage = self.stages.get(stage_name)
            if stage:
                for dep in stage.get_dependencies():
                    if dep in self.stages:
                        visit(dep)
                    else:
                        logger.warning(f"Dependency {dep} not found for stage {stage_name}")

            temp_visited.remove(stage_name)
            visited.add(stage_name)
            order.append(stage_name)

        for stage_name in self.stages:
            if stage_name not in visited:
                visit(stage_name)

        self.stage_order = order
        logger.debug(f"Resolved stage order: {self.stage_order}")
