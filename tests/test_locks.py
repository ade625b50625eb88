import asyncio

from game_tracker.locks import EntityKind, EntityLockRegistry


class TestEntityLockRegistry:

    def test_same_entity_is_serialized(self):
        registry = EntityLockRegistry()
        events = []

        async def worker(name):
            async with registry.hold(EntityKind.GAME, 77):
                events.append(f"{name} in")
                await asyncio.sleep(0.01)
                events.append(f"{name} out")

        async def main():
            await asyncio.gather(worker("a"), worker("b"))

        asyncio.run(main())
        assert events == ["a in", "a out", "b in", "b out"]

    def test_different_entities_overlap(self):
        registry = EntityLockRegistry()
        events = []

        async def worker(kind, remote_id):
            async with registry.hold(kind, remote_id):
                events.append("in")
                await asyncio.sleep(0.01)
                events.append("out")

        async def main():
            await asyncio.gather(
                worker(EntityKind.GAME, 1),
                worker(EntityKind.GAME, 2),
                worker(EntityKind.THREAD, 1),
            )

        asyncio.run(main())
        assert events[:3] == ["in", "in", "in"]

    def test_idle_locks_are_dropped(self):
        registry = EntityLockRegistry()

        async def main():
            async with registry.hold(EntityKind.THREAD, 5):
                assert registry.active_count() == 1
            assert registry.active_count() == 0

            try:
                async with registry.hold(EntityKind.THREAD, 6):
                    raise RuntimeError("fail inside lock")
            except RuntimeError:
                pass
            assert registry.active_count() == 0

        asyncio.run(main())
