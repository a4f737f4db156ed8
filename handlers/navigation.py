"""
Navigation event handlers: going back and starting over.
"""

from core.diagnosis import go_back, history_of
from handlers.base import BaseHandler, HandlerContext, HandlerResult


class GoBackHandler(BaseHandler):
    """
    Handle a "back" request.

    Drops the latest answer, rebuilds the state by replay, and shows the
    question whose answer was dropped so it can be answered again.
    """

    def handle(self, ctx: HandlerContext) -> HandlerResult:
        history = history_of(ctx.state)
        if not history:
            return HandlerResult.unchanged(ctx)

        dropped_question_id = history[-1][0]
        rebuilt = go_back(
            ctx.question_set,
            ctx.state,
            preferred_weight=ctx.session.preferred_weight,
            session_id=ctx.session.session_id,
        )
        self._summarize(ctx, rebuilt)
        return HandlerResult(state=rebuilt, current_question_id=dropped_question_id)


class ResetHandler(BaseHandler):
    """Handle a "start over" request."""

    def handle(self, ctx: HandlerContext) -> HandlerResult:
        ctx.session.reset()
        ctx.add_debug(f"RESET: preferred_weight={ctx.session.preferred_weight}")
        return HandlerResult(
            state=ctx.session.diagnosis,
            current_question_id=self._first_question_id(ctx),
        )
