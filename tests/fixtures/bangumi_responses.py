# ABOUTME: Canned Bangumi API response fixtures for testing.
# ABOUTME: Provides realistic JSON dicts matching the search, subject, and token endpoints.

FRIEREN_SEARCH_RESPONSE = {
    "results": 2,
    "list": [
        {
            "id": 400602,
            "type": 2,
            "name": "葬送のフリーレン",
            "name_cn": "葬送的芙莉莲",
            "air_date": "2023-09-29",
            "images": {
                "large": "https://lain.bgm.tv/pic/cover/l/13/c5/400602_ZI8Y9.jpg",
                "common": "https://lain.bgm.tv/pic/cover/c/13/c5/400602_ZI8Y9.jpg",
            },
        },
        {
            "id": 464376,
            "type": 2,
            "name": "葬送のフリーレン 第2期",
            "name_cn": "",
        },
    ],
}

SEARCH_RESPONSE_BARE_LIST = [
    {"id": 12, "name": "ちょびっツ", "name_cn": "人形电脑天使心"},
]

SEARCH_RESPONSE_EMPTY: list = []

SEARCH_RESPONSE_NULL_LIST = {"results": 0, "list": None}

FRIEREN_SUBJECT = {
    "id": 400602,
    "type": 2,
    "name": "葬送のフリーレン",
    "name_cn": "葬送的芙莉莲",
    "summary": "勇者一行打倒魔王之后，精灵魔法使芙莉莲踏上了新的旅程。",
    "date": "2023-09-29",
    "platform": "TV",
    "images": {
        "large": "https://lain.bgm.tv/pic/cover/l/13/c5/400602_ZI8Y9.jpg",
        "common": "https://lain.bgm.tv/pic/cover/c/13/c5/400602_ZI8Y9.jpg",
    },
    "rating": {"rank": 1, "total": 52000, "score": 8.6},
    "tags": [
        {"name": "奇幻", "count": 9120},
        {"name": "TV", "count": 8000},
        {"name": "漫画改", "count": 7300},
        {"name": "奇幻", "count": 10},
        {"name": "冒险", "count": 5200},
        {"name": "治愈", "count": 3100},
        {"name": "2023年10月", "count": 2900},
    ],
}

SUBJECT_NO_RATING = {
    "id": 520000,
    "name": "Untitled Project",
    "name_cn": "",
    "summary": "",
    "date": "0000-00-00",
    "tags": [],
}

SUBJECT_ZERO_SCORE = {
    "id": 520001,
    "name": "Fresh Airing",
    "rating": {"rank": 0, "total": 0, "score": 0},
}

TOKEN_RESPONSE = {
    "access_token": "new-access-token",
    "expires_in": 604800,
    "token_type": "Bearer",
    "scope": None,
    "refresh_token": "new-refresh-token",
    "user_id": 1,
}

TOKEN_RESPONSE_NO_REFRESH = {
    "access_token": "new-access-token",
    "expires_in": 604800,
    "token_type": "Bearer",
}

ME_RESPONSE = {"id": 1, "username": "sai", "nickname": "Sai"}
