"""
Answer event handlers.

SelectOptionHandler records an answer (re-answering truncates later
answers) and moves to the next eligible question. AdvanceHandler moves
on only when the question on screen has been answered.
"""

from config import messages
from core.diagnosis import answer_question, find_next_question_id
from handlers.base import BaseHandler, HandlerContext, HandlerResult


class SelectOptionHandler(BaseHandler):
    """Handle an option being selected."""

    def handle(self, ctx: HandlerContext) -> HandlerResult:
        question_id = ctx.event.question_id or ctx.session.current_question_id
        option_key = ctx.event.option_key

        if not option_key:
            return HandlerResult.unchanged(ctx, messages.VALIDATION_SELECT_OPTION)

        next_state = answer_question(
            ctx.question_set,
            ctx.state,
            question_id,
            option_key,
            preferred_weight=ctx.session.preferred_weight,
            session_id=ctx.session.session_id,
        )
        if next_state is None:
            ctx.add_debug(f"REJECTED: {question_id}={option_key}")
            return HandlerResult.unchanged(ctx, messages.VALIDATION_UNKNOWN_OPTION)

        self._summarize(ctx, next_state)
        return HandlerResult(
            state=next_state,
            current_question_id=find_next_question_id(ctx.question_set, next_state),
        )


class AdvanceHandler(BaseHandler):
    """Handle a "next" request."""

    def handle(self, ctx: HandlerContext) -> HandlerResult:
        current_id = ctx.session.current_question_id

        # With nothing on screen (fresh session) just look up the next question
        if current_id is not None and current_id not in ctx.state.answers:
            return HandlerResult.unchanged(ctx, messages.VALIDATION_SELECT_OPTION)

        return HandlerResult(
            state=ctx.state,
            current_question_id=find_next_question_id(ctx.question_set, ctx.state),
        )
