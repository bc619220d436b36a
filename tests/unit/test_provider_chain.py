"""Unit tests for location provider chain and fallback logic."""
import pytest

from fetchnews.errors import ProviderUnavailableError
from fetchnews.location import ProviderChain
from fetchnews.location.providers import Place
from tests.fakes import FakeLocationProvider


def _provider(name, fail=False):
    return FakeLocationProvider(name=name, place=Place(city=name), fail=fail)


def test_provider_chain_requires_providers():
    """Test that an empty chain is rejected."""
    with pytest.raises(ValueError):
        ProviderChain([])


@pytest.mark.asyncio
async def test_provider_chain_single_provider():
    """Test basic lookup with a single working provider."""
    provider = _provider("ipapi")
    chain = ProviderChain([provider])

    place = await chain.locate()
    assert place.city == "ipapi"
    assert provider.calls == 1


@pytest.mark.asyncio
async def test_provider_chain_fallback_to_second():
    """Test fallback when the first provider fails."""
    provider1 = _provider("provider1", fail=True)
    provider2 = _provider("provider2")
    chain = ProviderChain([provider1, provider2])

    place = await chain.locate()
    assert place.city == "provider2"
    assert provider1.calls == 1
    assert provider2.calls == 1


@pytest.mark.asyncio
async def test_provider_chain_all_fail():
    """Test error when every provider fails."""
    chain = ProviderChain([_provider("p1", fail=True), _provider("p2", fail=True)])

    with pytest.raises(ProviderUnavailableError) as exc_info:
        await chain.locate()
    assert exc_info.value.provider == "fallback"
    assert "ip lookup failed" in str(exc_info.value)


@pytest.mark.asyncio
async def test_provider_chain_sticky_behavior():
    """Test that the chain sticks with the provider that last worked."""
    provider1 = _provider("provider1", fail=True)
    provider2 = _provider("provider2")
    chain = ProviderChain([provider1, provider2], sticky=True)

    await chain.locate()
    provider1.fail = False

    place = await chain.locate()
    assert place.city == "provider2"
    assert provider1.calls == 1
    assert provider2.calls == 2


@pytest.mark.asyncio
async def test_provider_chain_non_sticky_uses_priority_order():
    """Test that non-sticky chains always start from the top."""
    provider1 = _provider("provider1", fail=True)
    provider2 = _provider("provider2")
    chain = ProviderChain([provider1, provider2], sticky=False)

    await chain.locate()
    provider1.fail = False

    place = await chain.locate()
    assert place.city == "provider1"
    assert provider1.calls == 2


@pytest.mark.asyncio
async def test_provider_chain_reset_session():
    """Test that reset_session forgets the sticky provider."""
    provider1 = _provider("provider1", fail=True)
    provider2 = _provider("provider2")
    chain = ProviderChain([provider1, provider2])

    await chain.locate()
    provider1.fail = False
    chain.reset_session()

    place = await chain.locate()
    assert place.city == "provider1"
