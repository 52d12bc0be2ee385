def calculate_metrics(results, eval_cases):
    case_map = {c["id"]: c for c in eval_cases}

    decision_correct = 0
    wrong_winner = 0
    ambiguous = 0

    for r in results:
        expected = case_map[r["id"]]

        if r["decision"] == expected["expected_decision"]:
            decision_correct += 1

        # Naming the wrong product is worse than asking or refusing
        if r["decision"] == "single" and r["winner"] != expected["expected_title"]:
            wrong_winner += 1

        if r["decision"] == "multiple":
            ambiguous += 1

    total = len(results)
    return {
        "decision_accuracy": decision_correct / total if total else 1.0,
        "wrong_winner_count": wrong_winner,
        "ambiguity_rate": ambiguous / total if total else 0.0,
        "total_cases": total,
    }
