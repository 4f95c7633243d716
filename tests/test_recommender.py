# =============================================
# File: tests/test_recommender.py
# Purpose: Top-match / carousel split and its fallback rules
# =============================================
import sys, os
sys.path.append(os.path.dirname(os.path.dirname(__file__)))

from giftbot.services.catalog import Product, default_catalog
from giftbot.services.recommender import initial_pool, select

def _ids(products):
    return [p.id for p in products]

def _p(pid, name, category):
    return Product(id=pid, name=name, category=category, price=10)

def test_no_overlap_falls_back_to_catalog_head():
    cat = default_catalog()
    sel = select(cat, "asdf qwer")
    assert sel.top_matches == []
    assert _ids(sel.related) == ["1", "2", "3", "4", "5"]
    assert sel.related_source == "catalog"

def test_ranked_split_top4_then_next5():
    cat = default_catalog()
    text = ("Try the Castle Builder Set, Medieval Castle, Rainbow Stacker, "
            "Cuddly Elephant, Mega Art Kit or Super Galactic Robot")
    sel = select(cat, text)
    assert _ids(sel.top_matches) == ["5", "3", "9", "2"]
    assert _ids(sel.related) == ["8", "4", "7"]
    assert sel.related_source == "ranked"

def test_only_top_matches_uses_same_category():
    cat = default_catalog()
    sel = select(cat, "I want Speed Racer RC")
    assert _ids(sel.top_matches) == ["1", "10"]
    # other Outdoor Fun items that are not already shown inline
    assert _ids(sel.related) == ["6"]
    assert sel.related_source == "category"

def test_category_exhausted_falls_back_to_catalog_without_top_matches():
    cat = default_catalog()
    sel = select(cat, "Some cuddly plushies")
    assert set(_ids(sel.top_matches)) == {"3", "7"}
    assert _ids(sel.related) == ["1", "2", "4", "5", "6"]
    assert sel.related_source == "catalog"

def test_caps_and_disjointness_hold_for_many_matches():
    cat = [_p(str(i), f"Robot Model {i}", "Robots") for i in range(20)]
    sel = select(cat, "robot")
    assert len(sel.top_matches) == 4
    assert len(sel.related) == 5
    assert not set(_ids(sel.top_matches)) & set(_ids(sel.related))

def test_small_catalog_fallback_is_shorter_than_cap():
    cat = [_p("a", "Kite", "Outdoor"), _p("b", "Drum", "Music")]
    sel = select(cat, "zzzz")
    assert _ids(sel.related) == ["a", "b"]

def test_feedback_is_taken_into_account():
    cat = default_catalog()
    plain = select(cat, "a speed racer")
    assert _ids(plain.top_matches)[0] == "1"
    disliked = select(cat, "a speed racer", {"1": "dislike"})
    assert _ids(disliked.top_matches)[0] == "10"
    assert disliked.score_of("1") < plain.score_of("1")

def test_initial_pool_orders_catalog_head_by_reviews():
    cat = default_catalog()
    assert _ids(initial_pool(cat)) == ["3", "1", "5", "2", "4"]
