"""希少動画フィルタのテスト"""

from rare_finder.domain.rarity import select_rare


class TestSelectRare:
    """select_rare のテスト"""

    def test_keeps_only_below_threshold(self, make_detail) -> None:
        details = [make_detail("a", 3), make_detail("b", 10), make_detail("c", 9), make_detail("d", 500)]
        rare = select_rare(details, 10)
        assert [d.id for d in rare] == ["a", "c"]

    def test_threshold_is_exclusive(self, make_detail) -> None:
        """しきい値ちょうどは希少ではない"""
        assert select_rare([make_detail("a", 10)], 10) == []

    def test_zero_views(self, make_detail) -> None:
        assert len(select_rare([make_detail("a", 0)], 1)) == 1

    def test_idempotent(self, make_detail) -> None:
        details = [make_detail(str(i), i * 3) for i in range(10)]
        once = select_rare(details, 10)
        assert select_rare(once, 10) == once

    def test_empty(self) -> None:
        assert select_rare([], 10) == []
