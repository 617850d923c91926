from domain.services.chunker import chunk_text, split_sentences


def _sentences(n):
    return " ".join(f"Sentence number {i} talks about topic {i}." for i in range(n))


def test_empty_text_yields_no_chunks():
    assert chunk_text("") == []
    assert chunk_text("   \n\t ") == []


def test_short_text_is_single_terminated_chunk():
    assert chunk_text("Short text without a period") == ["Short text without a period."]
    assert chunk_text("Already ends here!") == ["Already ends here!"]


def test_split_sentences_normalizes_whitespace_and_keeps_tail():
    text = "First one.   Second\n\none?  Third! trailing fragment"
    assert split_sentences(text) == ["First one.", "Second one?", "Third!", "trailing fragment"]


def test_decimal_points_do_not_split():
    assert split_sentences("Version 3.11 is used. Done.") == ["Version 3.11 is used.", "Done."]


def test_chunks_respect_target_size_and_end_with_punctuation():
    text = _sentences(60)
    chunks = chunk_text(text, size=200, overlap=2)
    assert len(chunks) > 1
    for chunk in chunks:
        assert len(chunk) <= 200
        assert chunk[-1] in ".!?"


def test_sentences_are_never_split_across_chunks():
    text = _sentences(40)
    sentences = set(split_sentences(text))
    for chunk in chunk_text(text, size=150, overlap=1):
        for piece in split_sentences(chunk):
            assert piece in sentences


def test_consecutive_chunks_overlap_by_two_sentences():
    chunks = chunk_text(_sentences(30), size=180, overlap=2)
    for prev, nxt in zip(chunks, chunks[1:]):
        assert split_sentences(nxt)[:2] == split_sentences(prev)[-2:]


def test_zero_overlap_has_no_shared_sentences():
    chunks = chunk_text(_sentences(30), size=180, overlap=0)
    seen = []
    for chunk in chunks:
        seen.extend(split_sentences(chunk))
    assert len(seen) == len(set(seen)) == 30


def test_single_oversized_sentence_is_kept_whole():
    long_sentence = "word " * 300 + "end."
    text = "Intro sentence. " + long_sentence + " Outro sentence."
    chunks = chunk_text(text, size=100, overlap=0)
    assert any(len(c) > 100 for c in chunks)
    assert " ".join(chunks).count("end.") == 1


def test_dropping_overlap_reconstructs_the_text():
    text = _sentences(25) + "\n\n  and a trailing   fragment without punctuation"
    chunks = chunk_text(text, size=180, overlap=2)
    assert len(chunks) > 2

    pieces = split_sentences(chunks[0])
    for chunk in chunks[1:]:
        pieces.extend(split_sentences(chunk)[2:])

    expected = " ".join(text.split()) + "."
    assert " ".join(pieces) == expected
