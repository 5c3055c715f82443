"""Tests for CapabilityProbe."""

from unittest.mock import AsyncMock, MagicMock

from src.wm_snapshot.domain.capability import CapabilityProbe
from src.wm_snapshot.domain.models import CapabilityDescriptor
from src.wm_snapshot.domain.relations import BANK_ACCOUNTS, HOLDINGS, PLUGGY_ACCOUNTS

_RELATIONS = [PLUGGY_ACCOUNTS, BANK_ACCOUNTS, HOLDINGS]


def _repo(present: set[str]) -> AsyncMock:
    async def relation_exists(db: object, relation: str) -> bool:
        if relation in present:
            return True
        raise Exception(f'relation "{relation}" does not exist')

    repo = AsyncMock()
    repo.relation_exists.side_effect = relation_exists
    return repo


class TestProbe:
    async def test_failed_check_means_absent(self) -> None:
        probe = CapabilityProbe(_repo({PLUGGY_ACCOUNTS}), relations=_RELATIONS)

        caps = await probe.probe(MagicMock())

        assert caps.has(PLUGGY_ACCOUNTS)
        assert not caps.has(BANK_ACCOUNTS)
        assert not caps.has(HOLDINGS)

    async def test_false_result_means_absent(self) -> None:
        repo = AsyncMock()
        repo.relation_exists.return_value = False
        probe = CapabilityProbe(repo, relations=_RELATIONS)

        caps = await probe.probe(MagicMock())

        assert caps.present == frozenset()
        assert caps.checked == frozenset(_RELATIONS)

    async def test_as_dict_reports_every_checked_relation(self) -> None:
        probe = CapabilityProbe(_repo({HOLDINGS}), relations=_RELATIONS)

        caps = await probe.probe(MagicMock())

        assert caps.as_dict() == {
            BANK_ACCOUNTS: False,
            HOLDINGS: True,
            PLUGGY_ACCOUNTS: False,
        }

    async def test_one_check_per_relation(self) -> None:
        repo = _repo(set(_RELATIONS))
        probe = CapabilityProbe(repo, relations=_RELATIONS)

        await probe.probe(MagicMock())

        assert repo.relation_exists.await_count == len(_RELATIONS)


class TestMemoization:
    async def test_no_ttl_reprobes(self) -> None:
        repo = _repo(set(_RELATIONS))
        probe = CapabilityProbe(repo, relations=_RELATIONS, ttl_seconds=0)

        await probe.probe(MagicMock())
        await probe.probe(MagicMock())

        assert repo.relation_exists.await_count == 2 * len(_RELATIONS)

    async def test_reused_within_ttl_and_rederived_after(self) -> None:
        now = [100.0]
        repo = _repo(set(_RELATIONS))
        probe = CapabilityProbe(
            repo, relations=_RELATIONS, ttl_seconds=30, clock=lambda: now[0]
        )

        first = await probe.probe(MagicMock())
        now[0] += 10
        second = await probe.probe(MagicMock())
        assert second is first
        assert repo.relation_exists.await_count == len(_RELATIONS)

        now[0] += 30
        await probe.probe(MagicMock())
        assert repo.relation_exists.await_count == 2 * len(_RELATIONS)

    async def test_refresh_forces_rederivation(self) -> None:
        repo = _repo(set(_RELATIONS))
        probe = CapabilityProbe(repo, relations=_RELATIONS, ttl_seconds=300, clock=lambda: 0.0)

        await probe.probe(MagicMock())
        probe.refresh()
        await probe.probe(MagicMock())

        assert repo.relation_exists.await_count == 2 * len(_RELATIONS)


class TestDescriptor:
    def test_of(self) -> None:
        caps = CapabilityDescriptor.of(PLUGGY_ACCOUNTS, HOLDINGS)
        assert caps.has_all(PLUGGY_ACCOUNTS, HOLDINGS)
        assert not caps.has_all(PLUGGY_ACCOUNTS, BANK_ACCOUNTS)

    def test_empty(self) -> None:
        assert not CapabilityDescriptor().has(PLUGGY_ACCOUNTS)
