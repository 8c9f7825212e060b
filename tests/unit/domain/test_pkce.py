from src.domain.entities import CodeChallengeMethod
from src.domain.pkce import create_code_challenge, generate_pkce_pair, verify_code_challenge

# RFC 7636 Appendix B
RFC_VERIFIER = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"
RFC_CHALLENGE = "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"


def test_s256_matches_rfc_example():
    assert create_code_challenge(RFC_VERIFIER, CodeChallengeMethod.S256) == RFC_CHALLENGE
    assert verify_code_challenge(RFC_VERIFIER, RFC_CHALLENGE, CodeChallengeMethod.S256)


def test_plain_compares_verbatim():
    assert verify_code_challenge("same-value", "same-value", CodeChallengeMethod.plain)
    assert not verify_code_challenge("other-value", "same-value", CodeChallengeMethod.plain)


def test_missing_method_means_plain():
    assert verify_code_challenge("abc", "abc", None)


def test_missing_or_wrong_verifier_fails():
    assert not verify_code_challenge(None, RFC_CHALLENGE, CodeChallengeMethod.S256)
    assert not verify_code_challenge("", RFC_CHALLENGE, CodeChallengeMethod.S256)
    assert not verify_code_challenge(RFC_VERIFIER[:-1], RFC_CHALLENGE, CodeChallengeMethod.S256)


def test_non_ascii_verifier_fails_instead_of_raising():
    assert not verify_code_challenge("vérifier", RFC_CHALLENGE, CodeChallengeMethod.S256)


def test_generated_pair_verifies():
    verifier, challenge, method = generate_pkce_pair()

    assert method == CodeChallengeMethod.S256
    assert 43 <= len(verifier) <= 128
    assert verify_code_challenge(verifier, challenge, method)


def test_short_verifier_is_checked_like_any_other():
    challenge = create_code_challenge("abc123", CodeChallengeMethod.S256)

    assert verify_code_challenge("abc123", challenge, CodeChallengeMethod.S256)
    assert not verify_code_challenge("abc12", challenge, CodeChallengeMethod.S256)


def test_overlong_verifier_fails():
    verifier = "v" * 129
    challenge = create_code_challenge(verifier, CodeChallengeMethod.S256)

    assert not verify_code_challenge(verifier, challenge, CodeChallengeMethod.S256)
