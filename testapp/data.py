"""
Sample dataset for the lux-crossfilter test app.
Ten cats, small enough to reason about, with a multi-valued attribute or two to filter on.
"""

CUTENESS_THRESHOLD = 9

CATS = [
    {"id": 1,  "name": "Cecil", "age": 4,  "colours": ["black", "white", "beige"],  "country": ["Russia"],            "cuteness": 11},
    {"id": 2,  "name": "Boris", "age": 9,  "colours": ["black", "white"],           "country": ["Italy"],             "cuteness": 5},
    {"id": 3,  "name": "Irina", "age": 6,  "colours": ["ginger", "beige"],          "country": ["Britain", "Russia"], "cuteness": 6},
    {"id": 4,  "name": "Jimmy", "age": 12, "colours": ["black"],                    "country": ["Iran"],              "cuteness": 3},
    {"id": 5,  "name": "Masha", "age": 4,  "colours": ["brown", "black", "beige"],  "country": ["Brazil"],            "cuteness": 14},
    {"id": 6,  "name": "Gorge", "age": 6,  "colours": ["blue", "grey"],             "country": ["Iran"],              "cuteness": 7},
    {"id": 7,  "name": "Milly", "age": 7,  "colours": ["black", "white", "ginger"], "country": ["Russia"],            "cuteness": 8},
    {"id": 8,  "name": "Honey", "age": 7,  "colours": ["white"],                    "country": "Spain",               "cuteness": 12},
    {"id": 9,  "name": "Simon", "age": 15, "colours": ["black", "white", "grey"],   "country": ["Britain"],           "cuteness": 5},
    {"id": 10, "name": "Julia", "age": 11, "colours": ["black", "grey", "ginger"],  "country": ["Russia"],            "cuteness": 13},
]

FILTER_MAP = {
    "colour":  {"property": "colours",  "dimension": "colour",   "method": "in_array", "boolean": "or"},
    "country": {"property": "country",  "dimension": "country",  "method": "in_array", "boolean": "and"},
    "minAge":  {"property": "age",      "dimension": "age",      "method": "range_min"},
    "maxAge":  {"property": "age",      "dimension": "age",      "method": "range_max"},
    "name":    {"property": "name",     "dimension": "name",     "method": "exact"},
    "isCute":  {"property": "cuteness", "dimension": "cuteness", "method": "function"},
}

PREDICATES = {
    "isCute": lambda cuteness: cuteness > CUTENESS_THRESHOLD,
}

SORT = {"sort_property": "name", "is_ascending": True}
