"""Edit-distance based string similarity used for fuzzy name and place matching."""


def levenshtein_distance(str1: str, str2: str) -> int:
    """Minimum number of single-character insertions, deletions or substitutions."""
    m, n = len(str1), len(str2)

    if m == 0:
        return n
    if n == 0:
        return m

    dp = [[0] * (n + 1) for _ in range(m + 1)]
    for i in range(m + 1):
        dp[i][0] = i
    for j in range(n + 1):
        dp[0][j] = j

    for i in range(1, m + 1):
        for j in range(1, n + 1):
            cost = 0 if str1[i - 1] == str2[j - 1] else 1
            dp[i][j] = min(
                dp[i - 1][j] + 1,         # deletion
                dp[i][j - 1] + 1,         # insertion
                dp[i - 1][j - 1] + cost,  # substitution
            )

    return dp[m][n]


def string_similarity(str1: str | None, str2: str | None) -> float:
    """
    Similarity score (0.0 to 1.0) between two strings.

    Comparison is case-insensitive and ignores surrounding whitespace.
    Missing or blank input scores 0.0 rather than failing.
    """
    if not str1 or not str2:
        return 0.0

    s1 = str1.lower().strip()
    s2 = str2.lower().strip()

    if s1 == s2:
        # Two whitespace-only strings land here too
        return 1.0 if s1 else 0.0
    if not s1 or not s2:
        return 0.0

    max_len = max(len(s1), len(s2))
    return 1.0 - (levenshtein_distance(s1, s2) / max_len)
