#!/usr/bin/env python3
"""
Unit tests for the activation mailbox
"""

import asyncio
import concurrent.futures
import os
import sys
import threading
import time
import unittest

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from niri_switch.channel import ChannelFull, Trigger, TriggerChannel, UserCancelled, UserSelected


class TestTriggerChannel(unittest.IsolatedAsyncioTestCase):
    """Test bounded FIFO delivery"""

    async def asyncSetUp(self):
        """Set up a small channel bound to the test loop"""
        self.channel = TriggerChannel(capacity=3)
        self.channel.attach(asyncio.get_running_loop())

    def test_capacity_must_be_positive(self):
        """Test zero-slot channel is rejected"""
        with self.assertRaises(ValueError):
            TriggerChannel(capacity=0)

    async def test_fifo_order(self):
        """Test events come out in arrival order"""
        first, second, third = Trigger(), UserSelected(7), UserCancelled()
        self.channel.try_send(first)
        self.channel.try_send(second)
        self.channel.try_send(third)

        self.assertIs(await self.channel.receive(), first)
        self.assertEqual(await self.channel.receive(), UserSelected(7))
        self.assertIs(await self.channel.receive(), third)

    async def test_no_coalescing(self):
        """Test repeated triggers are all delivered"""
        for _ in range(3):
            self.channel.try_send(Trigger())
        self.assertEqual(len(self.channel), 3)

        for _ in range(3):
            self.assertIsInstance(await self.channel.receive(), Trigger)
        self.assertEqual(len(self.channel), 0)

    async def test_try_send_when_full(self):
        """Test full channel refuses instead of dropping silently"""
        for _ in range(3):
            self.channel.try_send(Trigger())

        with self.assertRaises(ChannelFull):
            self.channel.try_send(Trigger())
        self.assertEqual(len(self.channel), 3)

    async def test_send_waits_for_free_slot(self):
        """Test blocking send resumes once a slot frees up"""
        for _ in range(3):
            self.channel.try_send(Trigger())

        pending = asyncio.create_task(self.channel.send(UserCancelled()))
        await asyncio.sleep(0.05)
        self.assertFalse(pending.done())

        await self.channel.receive()
        await asyncio.wait_for(pending, timeout=1.0)
        self.assertEqual(len(self.channel), 3)

    async def test_send_threadsafe_from_other_thread(self):
        """Test delivery from a foreign thread"""
        await asyncio.to_thread(self.channel.send_threadsafe, Trigger(), False, 1.0)
        self.assertIsInstance(await asyncio.wait_for(self.channel.receive(), 1.0), Trigger)

    async def test_send_threadsafe_reports_full(self):
        """Test backpressure is visible to a foreign sender"""
        for _ in range(3):
            self.channel.try_send(Trigger())

        with self.assertRaises(ChannelFull):
            await asyncio.to_thread(self.channel.send_threadsafe, Trigger(), False, 1.0)

    async def test_send_threadsafe_wait_queues_when_full(self):
        """Test waiting sender is queued once space frees up"""
        for _ in range(3):
            self.channel.try_send(Trigger())

        future = await asyncio.to_thread(self.channel.send_threadsafe, UserSelected(1), True)
        await asyncio.sleep(0.05)
        self.assertFalse(future.done())

        await self.channel.receive()
        await asyncio.sleep(0.05)
        self.assertTrue(future.done())
        self.assertEqual(len(self.channel), 3)

    async def test_send_threadsafe_timeout_not_queued_later(self):
        """Test a send that timed out on a busy loop is never delivered"""
        outcome = []

        def sender():
            try:
                self.channel.send_threadsafe(Trigger(), False, 0.05)
                outcome.append("sent")
            except concurrent.futures.TimeoutError as e:
                outcome.append(e)

        thread = threading.Thread(target=sender)
        thread.start()
        # Keep the loop busy past the sender's timeout
        time.sleep(0.3)
        await asyncio.to_thread(thread.join, 1.0)
        await asyncio.sleep(0.05)

        self.assertEqual(len(outcome), 1)
        self.assertIsInstance(outcome[0], concurrent.futures.TimeoutError)
        self.assertEqual(len(self.channel), 0)

    def test_send_threadsafe_without_consumer(self):
        """Test sending before a consumer loop is attached"""
        channel = TriggerChannel()
        with self.assertRaises(RuntimeError):
            channel.send_threadsafe(Trigger())


if __name__ == '__main__':
    unittest.main()
