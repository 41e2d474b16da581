"""Tests for context completion."""
from services.token_index import TokenIndex, scan_tokens


def texts(suggestions):
    return [s.text for s in suggestions]


def test_prefix_filter_excludes_stem_and_non_matching_identities():
    text = "foo = 1\nfoobar = 2\nfoo"
    result = texts(TokenIndex().complete(text, len(text), ["abc"]))
    assert "foobar" in result
    assert "foo" not in result
    assert "Out['abc']" not in result
    assert "abc" not in result


def test_identities_and_their_outputs_are_candidates():
    text = "x = O"
    result = texts(TokenIndex().complete(text, len(text), ["abc", "def"]))
    assert result == ["Out['abc']", "Out['def']"]


def test_identity_prefix_completes_identity():
    text = "y = ab"
    result = TokenIndex().complete(text, len(text), ["abc123"])
    assert texts(result) == ["abc123"]
    assert (result[0].start, result[0].end) == (4, 6)
    assert result[0].kind == "context"


def test_empty_stem_returns_full_pool_in_discovery_order():
    text = "alpha = beta\n"
    result = texts(TokenIndex().complete(text, len(text), ["id1"]))
    assert result == ["alpha", "=", "beta", "id1", "Out['id1']"]


def test_cursor_at_start_has_empty_stem():
    result = texts(TokenIndex().complete("alpha", 0, []))
    assert result == ["alpha"]


def test_candidates_are_deduplicated():
    text = "spam = spam + spam\nsp"
    result = texts(TokenIndex().complete(text, len(text), []))
    assert result == ["spam"]


def test_stem_is_whole_token_under_cursor():
    text = "foobar = 1\nfoob"
    # Cursor after "fo" in the second line
    cursor = text.rindex("foob") + 2
    result = TokenIndex().complete(text, cursor, [])
    assert texts(result) == ["foobar"]
    assert (result[0].start, result[0].end) == (11, 15)


def test_token_under_cursor_is_never_offered_to_itself():
    text = "foobar = 1\nfoobaz"
    cursor = text.rindex("foobaz") + 3
    result = texts(TokenIndex().complete(text, cursor, []))
    assert "foobaz" not in result
    assert result == []


def test_offsets_follow_newlines_only():
    text = 's = "a\u2028b"\nfoo = 1\nfo'
    result = TokenIndex().complete(text, len(text), [])
    assert texts(result) == ["foo"]
    assert (result[0].start, result[0].end) == (len(text) - 2, len(text))


def test_incomplete_code_still_tokenizes():
    text = "result = compute(value\nres"
    result = texts(TokenIndex().complete(text, len(text), []))
    assert "result" in result


def test_punctuation_and_whitespace_are_not_candidates():
    tokens = [t.text for t in scan_tokens("f(a, b)[0]\n")]
    assert tokens == ["f", "a", "b", "0"]


def test_cursor_past_end_is_clamped():
    result = texts(TokenIndex().complete("value\nva", 999, []))
    assert result == ["value"]
