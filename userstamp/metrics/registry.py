from prometheus_client import Counter

# outcome: stamped | suppressed | no_stamper
USERSTAMP_STAMPS_TOTAL = Counter(
    "userstamp_stamps_total",
    "Userstamp stamping attempts by model, role and outcome",
    ["model", "role", "outcome"],
)
