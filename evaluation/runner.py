from time import time


def run_evaluation(resolver, eval_cases, tenant_id="eval"):
    results = []

    for case in eval_cases:
        start = time()
        outcome = resolver.resolve(case["question"], tenant_id, emit_telemetry=False)
        latency_ms = int((time() - start) * 1000)

        winner = outcome.winner.item.title if outcome.decision == "single" else None

        results.append({
            "id": case["id"],
            "question": case["question"],
            "decision": outcome.decision,
            "winner": winner,
            "candidates": [c.to_dict() for c in outcome.candidates],
            "latency_ms": latency_ms,
        })

    return results
