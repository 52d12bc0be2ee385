EVAL_CATALOG = [
    {"title": "IVISKIN G3", "brand": "IVISKIN", "model": "G3", "url": "https://example.com/iviskin-g3"},
    {"title": "IVISKIN G4", "brand": "IVISKIN", "model": "G4", "url": "https://example.com/iviskin-g4"},
    {"title": "Braun Silk-expert Pro 5", "brand": "Braun", "model": "PL5", "url": "https://example.com/braun-pl5"},
    {"title": "Wix Website Builder", "brand": "Wix", "model": None, "url": "https://example.com/wix"},
]

EVAL_CASES = [
    {
        "id": "model_code_norwegian",
        "question": "G3 vekt",
        "expected_decision": "single",
        "expected_title": "IVISKIN G3",
    },
    {
        "id": "brand_and_model_separated",
        "question": "Hvor lenge varer batteriet på IVISKIN G-4?",
        "expected_decision": "single",
        "expected_title": "IVISKIN G4",
    },
    {
        "id": "shared_brand_only",
        "question": "iviskin",
        "expected_decision": "multiple",
        "expected_title": None,
    },
    {
        "id": "brand_without_model",
        "question": "wix",
        "expected_decision": "single",
        "expected_title": "Wix Website Builder",
    },
    {
        "id": "off_catalog",
        "question": "What is the weather tomorrow?",
        "expected_decision": "none",
        "expected_title": None,
    },
    {
        "id": "empty_question",
        "question": "   ",
        "expected_decision": "none",
        "expected_title": None,
    },
]
