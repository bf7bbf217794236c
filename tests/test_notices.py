from evfleet.notices import NoticeBoard


def test_board_keeps_most_recent_notices():
    board = NoticeBoard(max_notices=2)
    board.info("first")
    board.error("second")
    latest = board.success("third")

    assert [notice.message for notice in board.active()] == ["second", "third"]
    assert board.latest() is latest
    assert latest.level == "success"


def test_dismiss_removes_only_that_notice():
    board = NoticeBoard()
    keep = board.info("keep")
    drop = board.error("drop")

    board.dismiss(drop.id)

    assert board.active() == [keep]
    assert len(board) == 1
