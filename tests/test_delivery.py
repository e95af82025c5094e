from unittest.mock import AsyncMock, MagicMock

import pytest

from whatsapp_agent.delivery import DeliveryGateway, split_message
from whatsapp_agent.errors import DeliveryFailure


def test_short_text_is_a_single_chunk():
    assert split_message("hello there", 1500) == ["hello there"]


def test_text_without_whitespace_is_hard_cut():
    text = "x" * 3000

    chunks = split_message(text, 1500)

    assert len(chunks) == 2
    assert all(len(chunk) <= 1500 for chunk in chunks)
    assert "".join(chunks) == text


def test_prefers_newline_in_second_half():
    text = "a" * 30 + "\n" + "b" * 30

    assert split_message(text, 40) == ["a" * 30, "b" * 30]


def test_falls_back_to_space_when_newline_is_too_early():
    text = "a" * 5 + "\n" + "b" * 20 + " " + "c" * 20

    chunks = split_message(text, 40)

    assert chunks == ["a" * 5 + "\n" + "b" * 20, "c" * 20]


def test_words_are_not_split():
    words = " ".join(["word"] * 400)

    chunks = split_message(words, 100)

    assert all(len(chunk) <= 100 for chunk in chunks)
    assert all(set(chunk.split()) == {"word"} for chunk in chunks)
    assert sum(len(chunk.split()) for chunk in chunks) == 400


@pytest.mark.asyncio
async def test_gateway_sends_chunks_in_order():
    transport = MagicMock()
    transport.send_message = AsyncMock()
    gateway = DeliveryGateway(transport, max_length=10)

    sent = await gateway.send("whatsapp:+1", "aaaaaaaaaabbbbbbbbbbcc")

    assert sent == 3
    bodies = [call.args[1] for call in transport.send_message.call_args_list]
    assert bodies == ["aaaaaaaaaa", "bbbbbbbbbb", "cc"]


@pytest.mark.asyncio
async def test_gateway_propagates_failures_after_partial_delivery():
    transport = MagicMock()
    transport.send_message = AsyncMock(side_effect=[None, DeliveryFailure("boom")])
    gateway = DeliveryGateway(transport, max_length=10)

    with pytest.raises(DeliveryFailure):
        await gateway.send("whatsapp:+1", "a" * 25)

    assert transport.send_message.call_count == 2
