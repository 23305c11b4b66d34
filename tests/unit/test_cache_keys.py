import hashlib

from ttlstate.cache.keys import canonical_form, generate_key, generate_prefix
from ttlstate.utils.types import ConversationItem

MSGS = [ConversationItem("U1", "hello"), ConversationItem("U2", "ship it?")]


def test_key_is_deterministic_and_namespaced():
    k1 = generate_key(MSGS, "engineer", "en", "concise")
    k2 = generate_key(list(MSGS), "engineer", "en", "concise")
    assert k1 == k2
    assert k1.startswith("translation:")
    assert len(k1) == len("translation:") + 64

def test_key_layout_matches_sha256_of_canonical_form():
    raw = '[[["U1","hello"],["U2","ship it?"]],"engineer","en","concise"]'
    assert canonical_form(MSGS, "engineer", "en", "concise") == raw
    expected = "translation:" + hashlib.sha256(raw.encode("utf-8")).hexdigest()
    assert generate_key(MSGS, "engineer", "en", "concise") == expected

def test_delimiters_inside_text_cannot_collide():
    # slack link markup puts "|" and ":" into real message text
    one = [("U1", "see <http://x|U2:boom>")]
    two = [("U1", "see <http://x"), ("U2", "boom>")]
    assert generate_key(one, "pm", "en", "s") != generate_key(two, "pm", "en", "s")

    # field boundaries between role / language / style
    assert generate_key(MSGS, "pm||en", "s", "x") != generate_key(MSGS, "pm", "en||s", "x")
    # speaker/content boundary
    assert generate_key([("U1:a", "b")], "pm", "en", "s") != generate_key([("U1", "a:b")], "pm", "en", "s")

def test_non_ascii_content_is_stable():
    k = generate_key([("U1", "größe ✓")], "pm", "de", "s")
    assert k == generate_key([ConversationItem("U1", "größe ✓")], "pm", "de", "s")

def test_order_matters():
    assert generate_key(MSGS, "pm", "en", "s") != generate_key(list(reversed(MSGS)), "pm", "en", "s")

def test_every_field_matters():
    base = generate_key(MSGS, "pm", "en", "s")
    assert generate_key(MSGS, "eng", "en", "s") != base
    assert generate_key(MSGS, "pm", "de", "s") != base
    assert generate_key(MSGS, "pm", "en", "t") != base
    assert generate_key(MSGS[:1], "pm", "en", "s") != base

def test_accepts_tuples_and_message_dicts():
    as_tuples = [("U1", "hello"), ("U2", "ship it?")]
    as_dicts = [{"user": "U1", "text": "hello"}, {"user": "U2", "text": "ship it?"}]
    k = generate_key(MSGS, "pm", "en", "s")
    assert generate_key(as_tuples, "pm", "en", "s") == k
    assert generate_key(as_dicts, "pm", "en", "s") == k

def test_prefix_hierarchy():
    assert generate_prefix() == "translation"
    assert generate_prefix("engineer") == "translation:engineer"
    assert generate_prefix("engineer", "en") == "translation:engineer:en"
    assert generate_prefix(language="en") == "translation:en"
