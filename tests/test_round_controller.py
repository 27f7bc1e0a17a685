# tests/test_round_controller.py
import asyncio
import os
import sys
import tempfile
import unittest

sys.path.insert(0, os.path.abspath(os.path.dirname(__file__)))

from fake_backend import FakeBackend, build_context, make_user, request_json, write_token

from minicasino.domain.events.casino_events import (
    NotificationEvent,
    NotificationLevel,
    RoundEventType,
)
from minicasino.domain.exceptions import BetValidationError
from minicasino.domain.game.entities.bet_request import BetRequest, GameMode
from minicasino.domain.game.round_controller import RoundState

# asyncio timers may fire a hair before their deadline on coarse clocks
TOLERANCE = 0.01

SLOT_WIN = {
    "reels": ["7️⃣", "7️⃣", "7️⃣"],
    "multiplier": 10,
    "winAmount": 500,
    "isWin": True,
    "newBalance": 550,
}


class RoundControllerTestCase(unittest.IsolatedAsyncioTestCase):
    """Shared fixture: a logged-in context with 100 credits."""

    context_options = {}

    async def asyncSetUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.storage_path = os.path.join(self.tmpdir.name, "session.json")
        write_token(self.storage_path)

        self.backend = FakeBackend()
        self.backend.set("GET", "/auth/verify", body={"user": make_user(credits=100)})
        self.backend.set("GET", "/games/history", body={"games": [], "totalPages": 1})

        self.context = build_context(self.backend, self.storage_path, **self.context_options)
        self.notifications = []
        self.round_events = []
        self.context.event_dispatcher.register_for_class(NotificationEvent, self.notifications.append)
        for event_type in RoundEventType:
            self.context.event_dispatcher.register(event_type, self.round_events.append)

        await self.context.start()
        self.assertTrue(self.context.session.is_authenticated)
        self.assertEqual(self.context.balance.credits, 100)

    async def asyncTearDown(self):
        await self.context.close()
        self.tmpdir.cleanup()

    def events_of(self, event_type):
        return [e for e in self.round_events if e.type is event_type]

    def last_notification(self):
        return self.notifications[-1] if self.notifications else None


class TestEntryGuard(RoundControllerTestCase):
    """Wagers refused before any request is made."""

    async def test_bet_above_balance_is_rejected_locally(self):
        self.backend.set("POST", "/games/tigrinho", body=SLOT_WIN)

        with self.assertRaises(BetValidationError) as ctx:
            await self.context.slot.play(BetRequest.slot(150))

        self.assertEqual(ctx.exception.message, "Insufficient credits")
        self.assertEqual(self.backend.calls("POST", "/games/tigrinho"), [])
        self.assertIs(self.context.slot.state, RoundState.IDLE)
        self.assertEqual(self.context.balance.credits, 100)
        self.assertEqual(self.last_notification().level, NotificationLevel.ERROR)
        self.assertEqual(len(self.events_of(RoundEventType.ROUND_REJECTED)), 1)
        self.assertEqual(self.events_of(RoundEventType.ROUND_STARTED), [])

    async def test_prediction_without_number_is_rejected(self):
        with self.assertRaises(BetValidationError) as ctx:
            await self.context.prediction.play(BetRequest.prediction_bet(10, None))

        self.assertEqual(ctx.exception.message, "Choose a number")
        self.assertEqual(self.backend.calls("POST", "/games/doble"), [])
        self.assertIs(self.context.prediction.state, RoundState.IDLE)

    async def test_prediction_out_of_range_is_rejected(self):
        for number in (0, 15, -3):
            with self.assertRaises(BetValidationError):
                await self.context.prediction.play(BetRequest.prediction_bet(10, number))
        self.assertEqual(self.backend.calls("POST", "/games/doble"), [])

    async def test_non_positive_bets_are_rejected(self):
        for amount in (0, -5):
            with self.assertRaises(BetValidationError):
                await self.context.slot.play(BetRequest.slot(amount))
        self.assertEqual(self.backend.calls("POST", "/games/tigrinho"), [])

    async def test_bet_equal_to_balance_is_allowed(self):
        self.backend.set("POST", "/games/tigrinho", body={
            "reels": ["🍎", "🍊", "🍇"], "multiplier": 0, "winAmount": 0,
            "isWin": False, "newBalance": 0,
        })

        outcome = await self.context.slot.play(BetRequest.slot(100))

        self.assertIsNotNone(outcome)
        self.assertEqual(self.context.balance.credits, 0)

    async def test_wrong_mode_is_rejected(self):
        with self.assertRaises(BetValidationError):
            await self.context.slot.play(BetRequest.prediction_bet(10, 3))

    async def test_logged_out_player_cannot_play(self):
        await self.context.logout()

        with self.assertRaises(BetValidationError) as ctx:
            await self.context.slot.play(BetRequest.slot(10))

        self.assertEqual(ctx.exception.message, "Log in to play")
        self.assertEqual(self.backend.calls("POST", "/games/tigrinho"), [])


class TestResolvedRounds(RoundControllerTestCase):
    """Rounds that reach the server and come back."""

    async def test_slot_win_shows_server_balance_after_floor(self):
        self.backend.set("POST", "/games/tigrinho", body=SLOT_WIN)
        loop = asyncio.get_running_loop()
        history_calls_before = len(self.backend.calls("GET", "/games/history"))

        started = loop.time()
        outcome = await self.context.slot.play(BetRequest.slot(50))
        elapsed = loop.time() - started

        self.assertGreaterEqual(elapsed, 0.2 - TOLERANCE)
        self.assertTrue(outcome.is_win)
        self.assertEqual(outcome.win_amount, 500)
        self.assertEqual(outcome.result.outcome, ["7️⃣", "7️⃣", "7️⃣"])
        self.assertEqual(self.context.balance.credits, 550)
        self.assertEqual(self.context.session.identity.credits, 550)
        self.assertIs(self.context.slot.state, RoundState.IDLE)
        self.assertGreater(len(self.backend.calls("GET", "/games/history")), history_calls_before)

        resolved = self.events_of(RoundEventType.ROUND_RESOLVED)
        self.assertEqual(len(resolved), 1)
        self.assertTrue(resolved[0].data["is_win"])
        self.assertEqual(resolved[0].data["win_amount"], 500)
        self.assertEqual(self.last_notification().level, NotificationLevel.SUCCESS)
        self.assertIn("+500", self.notifications[-1].message)

        sent = request_json(self.backend.calls("POST", "/games/tigrinho")[0])
        self.assertEqual(sent, {"betAmount": 50})

    async def test_balance_is_taken_verbatim_from_server(self):
        # deliberately inconsistent with bet/win arithmetic
        self.backend.set("POST", "/games/tigrinho", body={
            "reels": ["💎", "💎", "💎"], "multiplier": 25, "winAmount": 1250,
            "isWin": True, "newBalance": 42,
        })

        await self.context.slot.play(BetRequest.slot(50))

        self.assertEqual(self.context.balance.credits, 42)

    async def test_reveal_waits_for_slow_server(self):
        self.backend.set("POST", "/games/doble", delay=0.3, body={
            "result": 4, "winAmount": 130, "isWin": True, "newBalance": 220,
        })
        loop = asyncio.get_running_loop()

        started = loop.time()
        outcome = await self.context.prediction.play(BetRequest.prediction_bet(10, 4))
        elapsed = loop.time() - started

        self.assertGreaterEqual(elapsed, 0.3 - TOLERANCE)
        self.assertGreaterEqual(outcome.reveal_duration, 0.3 - TOLERANCE)
        self.assertEqual(outcome.result.drawn_number, 4)
        self.assertEqual(self.context.balance.credits, 220)

    async def test_fast_server_still_waits_for_floor(self):
        self.backend.set("POST", "/games/doble", body={
            "result": 9, "winAmount": 0, "isWin": False, "newBalance": 90,
        })

        outcome = await self.context.prediction.play(BetRequest.prediction_bet(10, 4))

        self.assertGreaterEqual(outcome.reveal_duration, 0.1 - TOLERANCE)
        revealing = self.events_of(RoundEventType.ROUND_REVEALING)
        resolved = self.events_of(RoundEventType.ROUND_RESOLVED)
        self.assertEqual(len(revealing), 1)
        self.assertGreaterEqual(
            (resolved[0].timestamp - revealing[0].timestamp).total_seconds(), 0.0
        )

    async def test_prediction_loss_reports_drawn_number(self):
        self.backend.set("POST", "/games/doble", body={
            "result": 7, "winAmount": 0, "isWin": False, "newBalance": 75,
        })

        outcome = await self.context.prediction.play(BetRequest.prediction_bet(25, 3))

        self.assertFalse(outcome.is_win)
        self.assertEqual(self.context.balance.credits, 75)
        self.assertEqual(self.last_notification().message, "Drawn number: 7")
        sent = request_json(self.backend.calls("POST", "/games/doble")[0])
        self.assertEqual(sent, {"betAmount": 25, "prediction": 3})

    async def test_state_is_submitting_before_request_is_sent(self):
        seen = {}
        controller = self.context.slot

        def on_started(event):
            seen["on_started"] = controller.state

        def on_request(request):
            seen["at_request"] = controller.state

        def on_revealing(event):
            seen["on_revealing"] = controller.state

        self.context.event_dispatcher.register(RoundEventType.ROUND_STARTED, on_started)
        self.context.event_dispatcher.register(RoundEventType.ROUND_REVEALING, on_revealing)
        self.backend.set("POST", "/games/tigrinho", body=SLOT_WIN, on_request=on_request)

        await controller.play(BetRequest.slot(10))

        self.assertIs(seen["on_started"], RoundState.SUBMITTING)
        self.assertIs(seen["at_request"], RoundState.SUBMITTING)
        self.assertIs(seen["on_revealing"], RoundState.REVEALING)

    async def test_slot_emits_reel_frames_while_revealing(self):
        self.backend.set("POST", "/games/tigrinho", body=SLOT_WIN)

        await self.context.slot.play(BetRequest.slot(10))

        ticks = self.events_of(RoundEventType.REVEAL_TICK)
        self.assertGreaterEqual(len(ticks), 1)
        for tick in ticks:
            self.assertEqual(len(tick.data["reels"]), 3)
            for symbol in tick.data["reels"]:
                self.assertIn(symbol, self.context.slot.symbols)

    async def test_history_failure_does_not_fail_round(self):
        self.backend.set("POST", "/games/tigrinho", body=SLOT_WIN)
        self.backend.set("GET", "/games/history", status=500, body={"message": "db down"})

        outcome = await self.context.slot.play(BetRequest.slot(10))

        self.assertIsNotNone(outcome)
        self.assertEqual(self.context.balance.credits, 550)


class TestConcurrentPlay(RoundControllerTestCase):

    async def test_second_play_during_round_is_ignored(self):
        self.backend.set("POST", "/games/tigrinho", body=SLOT_WIN, delay=0.1)
        controller = self.context.slot

        first = asyncio.create_task(controller.play(BetRequest.slot(10)))
        await asyncio.sleep(0.02)
        self.assertTrue(controller.is_busy)

        second = await controller.play(BetRequest.slot(10))
        outcome = await first

        self.assertIsNone(second)
        self.assertIsNotNone(outcome)
        self.assertEqual(len(self.backend.calls("POST", "/games/tigrinho")), 1)
        self.assertEqual(len(self.events_of(RoundEventType.ROUND_STARTED)), 1)

    async def test_modes_are_independent(self):
        self.backend.set("POST", "/games/tigrinho", body=SLOT_WIN, delay=0.05)
        self.backend.set("POST", "/games/doble", body={
            "result": 2, "winAmount": 0, "isWin": False, "newBalance": 540,
        })

        await self.context.slot.play(BetRequest.slot(10))
        await self.context.prediction.play(BetRequest.prediction_bet(10, 5))

        # later resolution overwrites the earlier one
        self.assertEqual(self.context.balance.credits, 540)


class TestFailedRounds(RoundControllerTestCase):

    context_options = {"round_timeout": 0.2}

    async def assert_failed_cleanly(self, result, message="Error processing game"):
        self.assertIsNone(result)
        self.assertIs(self.context.slot.state, RoundState.IDLE)
        self.assertEqual(self.context.balance.credits, 100)
        self.assertEqual(self.context.slot.last_error, message)
        self.assertEqual(self.last_notification().level, NotificationLevel.ERROR)
        self.assertEqual(self.last_notification().message, message)
        self.assertEqual(len(self.events_of(RoundEventType.ROUND_FAILED)), 1)
        self.assertEqual(self.events_of(RoundEventType.ROUND_RESOLVED), [])

    async def test_network_failure_returns_to_idle(self):
        self.backend.set("POST", "/games/tigrinho", error=True)

        result = await self.context.slot.play(BetRequest.slot(50))

        await self.assert_failed_cleanly(result)

    async def test_server_error_returns_to_idle(self):
        self.backend.set("POST", "/games/tigrinho", status=500, body={"message": "boom"})

        result = await self.context.slot.play(BetRequest.slot(50))

        await self.assert_failed_cleanly(result)

    async def test_malformed_response_fails_round(self):
        self.backend.set("POST", "/games/tigrinho", body={"isWin": True, "winAmount": 10})

        result = await self.context.slot.play(BetRequest.slot(50))

        await self.assert_failed_cleanly(result)

    async def test_request_timeout_fails_round(self):
        self.backend.set("POST", "/games/tigrinho", body=SLOT_WIN, delay=2.0)
        loop = asyncio.get_running_loop()

        started = loop.time()
        result = await self.context.slot.play(BetRequest.slot(50))

        self.assertLess(loop.time() - started, 1.0)
        await self.assert_failed_cleanly(result)

    async def test_cancel_aborts_round(self):
        self.backend.set("POST", "/games/tigrinho", body=SLOT_WIN, delay=0.15)
        controller = self.context.slot

        task = asyncio.create_task(controller.play(BetRequest.slot(50)))
        await asyncio.sleep(0.02)
        self.assertTrue(controller.cancel())
        result = await task

        await self.assert_failed_cleanly(result, message="Round cancelled")
        self.assertFalse(controller.cancel())

    async def test_controller_usable_after_failure(self):
        self.backend.set("POST", "/games/tigrinho", error=True)
        await self.context.slot.play(BetRequest.slot(50))

        self.backend.set("POST", "/games/tigrinho", body=SLOT_WIN)
        outcome = await self.context.slot.play(BetRequest.slot(50))

        self.assertIsNotNone(outcome)
        self.assertEqual(self.context.balance.credits, 550)

    async def test_rejected_credential_ends_session(self):
        self.backend.set("POST", "/games/tigrinho", status=401, body={"message": "expired"})
        self.backend.set("GET", "/auth/verify", status=401, body={"message": "expired"})

        result = await self.context.slot.play(BetRequest.slot(50))

        self.assertIsNone(result)
        self.assertFalse(self.context.session.is_authenticated)
        self.assertIsNone(self.context.session.credential)
        self.assertEqual(self.context.balance.credits, 0)


class TestCancelDuringReveal(RoundControllerTestCase):
    """The server has settled the wager; only the reveal wait remains."""

    context_options = {"slot_floor": 0.5}

    async def start_revealing_round(self):
        self.backend.set("POST", "/games/tigrinho", body=SLOT_WIN)
        controller = self.context.slot
        task = asyncio.create_task(controller.play(BetRequest.slot(50)))
        await asyncio.sleep(0.1)
        self.assertIs(controller.state, RoundState.REVEALING)
        return controller, task

    async def test_cancel_resolves_with_server_balance(self):
        loop = asyncio.get_running_loop()
        started = loop.time()
        controller, task = await self.start_revealing_round()

        self.assertTrue(controller.cancel())
        outcome = await task

        self.assertLess(loop.time() - started, 0.5)
        self.assertIsNotNone(outcome)
        self.assertTrue(outcome.is_win)
        self.assertEqual(self.context.balance.credits, 550)
        self.assertEqual(self.context.session.identity.credits, 550)
        self.assertIs(controller.state, RoundState.IDLE)
        self.assertIsNone(controller.last_error)
        self.assertEqual(len(self.events_of(RoundEventType.ROUND_RESOLVED)), 1)
        self.assertEqual(self.events_of(RoundEventType.ROUND_FAILED), [])

    async def test_cancelling_the_caller_still_applies_balance(self):
        controller, task = await self.start_revealing_round()

        task.cancel()
        with self.assertRaises(asyncio.CancelledError):
            await task

        self.assertEqual(self.context.balance.credits, 550)
        self.assertIs(controller.state, RoundState.IDLE)

    async def test_logout_during_reveal_keeps_round_settled(self):
        controller, task = await self.start_revealing_round()

        await self.context.logout()
        outcome = await task

        self.assertIsNotNone(outcome)
        self.assertEqual(outcome.result.new_balance, 550)
        self.assertFalse(self.context.session.is_authenticated)
        self.assertEqual(self.context.balance.credits, 0)


if __name__ == "__main__":
    unittest.main()
