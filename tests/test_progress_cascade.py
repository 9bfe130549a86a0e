from __future__ import annotations

import itertools
import threading
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import sessionmaker

from codeclub.core.config import settings
from codeclub.crud import badge_crud, progress_crud
from codeclub.models.progress.user_progress_model import (
    UserChapterProgress,
    UserCourseProgress,
    UserLessonProgress,
)
from codeclub.models.user.badge_model import UserBadge
from codeclub.services.errors import ErrorKind, LearningError
from codeclub.services.progress_service import CascadeResult, complete_chapter_for_user
from tests.utils import (
    create_chapter,
    create_course_tree,
    create_intro_course,
    create_lesson,
    create_user,
)


@pytest.fixture()
def user(db_session):
    return create_user(db_session, username="learner", email="learner@example.com")


def _lesson_completed(db, user_id, lesson_id) -> bool:
    return (
        db.query(UserLessonProgress)
        .filter_by(user_id=user_id, lesson_id=lesson_id, completed=True)
        .count()
        == 1
    )


def _badge_count(db, user_id) -> int:
    return db.query(UserBadge).filter_by(user_id=user_id).count()


def test_completing_a_chapter_twice_keeps_the_first_completion(db_session, user):
    tree = create_course_tree(db_session, {"L1": ["A", "B"]})
    chapter_id = tree.chapters["A"].id

    first = complete_chapter_for_user(db_session, user.id, chapter_id)
    progress = db_session.query(UserChapterProgress).filter_by(user_id=user.id, chapter_id=chapter_id).one()
    first_completed_at = progress.completed_at

    second = complete_chapter_for_user(db_session, user.id, chapter_id)
    db_session.expire_all()
    rows = db_session.query(UserChapterProgress).filter_by(user_id=user.id, chapter_id=chapter_id).all()

    assert first.chapter_completed is True
    assert second == CascadeResult()
    assert len(rows) == 1
    assert rows[0].completed is True
    assert rows[0].completed_at == first_completed_at


def test_incomplete_chapter_record_is_flipped_and_stamped(db_session, user):
    tree = create_course_tree(db_session, {"L1": ["A", "B"]})
    chapter_id = tree.chapters["A"].id
    db_session.add(UserChapterProgress(user_id=user.id, chapter_id=chapter_id, completed=False))
    db_session.commit()

    result = complete_chapter_for_user(db_session, user.id, chapter_id)

    progress = db_session.query(UserChapterProgress).filter_by(user_id=user.id, chapter_id=chapter_id).one()
    assert result.chapter_completed is True
    assert progress.completed is True
    assert progress.completed_at is not None


@pytest.mark.parametrize("order", list(itertools.permutations(["c1", "c2", "c3"])))
def test_lesson_completes_only_with_its_last_chapter(db_session, user, order):
    tree = create_course_tree(db_session, {"L1": ["c1", "c2", "c3"], "L2": ["d1"]})
    lesson_id = tree.lessons["L1"].id

    for title in order[:2]:
        result = complete_chapter_for_user(db_session, user.id, tree.chapters[title].id)
        assert result.lesson_completed is False
        assert not _lesson_completed(db_session, user.id, lesson_id)

    result = complete_chapter_for_user(db_session, user.id, tree.chapters[order[2]].id)

    assert result.lesson_completed is True
    assert _lesson_completed(db_session, user.id, lesson_id)


def test_course_completion_awards_badge_exactly_once(db_session, user):
    tree = create_course_tree(db_session, {"l1": ["a"], "l2": ["b"]})

    complete_chapter_for_user(db_session, user.id, tree.chapters["a"].id)
    assert _badge_count(db_session, user.id) == 0

    result = complete_chapter_for_user(db_session, user.id, tree.chapters["b"].id)
    assert result.course_completed is True
    assert result.badge_awarded is True
    assert _badge_count(db_session, user.id) == 1

    replay = complete_chapter_for_user(db_session, user.id, tree.chapters["b"].id)
    assert replay.badge_awarded is False
    assert _badge_count(db_session, user.id) == 1
    assert db_session.query(UserCourseProgress).filter_by(user_id=user.id).count() == 1


def test_intro_course_scenario(db_session, user):
    tree = create_intro_course(db_session)
    a, b, c = (tree.chapters[name].id for name in ("A", "B", "C"))

    result_a = complete_chapter_for_user(db_session, user.id, a)
    assert result_a == CascadeResult(chapter_completed=True)

    result_b = complete_chapter_for_user(db_session, user.id, b)
    assert result_b == CascadeResult(chapter_completed=True, lesson_completed=True)
    assert not progress_crud.is_course_completed(db_session, user.id, tree.course.id)

    result_c = complete_chapter_for_user(db_session, user.id, c)
    assert result_c == CascadeResult(
        chapter_completed=True, lesson_completed=True, course_completed=True, badge_awarded=True
    )
    assert progress_crud.is_course_completed(db_session, user.id, tree.course.id)
    assert badge_crud.get_user_badge_ids(db_session, user.id) == {tree.badge.id}

    again = complete_chapter_for_user(db_session, user.id, a)
    assert again == CascadeResult()
    assert _badge_count(db_session, user.id) == 1


def test_course_without_badge_completes_without_award(db_session, user):
    tree = create_course_tree(db_session, {"L1": ["A"]}, badge_name=None)

    result = complete_chapter_for_user(db_session, user.id, tree.chapters["A"].id)

    assert result.course_completed is True
    assert result.badge_awarded is False
    assert _badge_count(db_session, user.id) == 0


def test_orphan_chapter_stops_after_chapter_record(db_session, user):
    chapter = create_chapter(db_session, None, "Loose chapter")

    result = complete_chapter_for_user(db_session, user.id, chapter.id)

    assert result == CascadeResult(chapter_completed=True)
    assert db_session.query(UserChapterProgress).filter_by(user_id=user.id).count() == 1
    assert db_session.query(UserLessonProgress).count() == 0


def test_orphan_lesson_stops_after_lesson_record(db_session, user):
    lesson = create_lesson(db_session, None, "Draft lesson")
    chapter = create_chapter(db_session, lesson, "Only chapter")

    result = complete_chapter_for_user(db_session, user.id, chapter.id)

    assert result == CascadeResult(chapter_completed=True, lesson_completed=True)
    assert _lesson_completed(db_session, user.id, lesson.id)
    assert db_session.query(UserCourseProgress).count() == 0


def test_unknown_chapter_is_not_found(db_session, user):
    with pytest.raises(LearningError) as exc:
        complete_chapter_for_user(db_session, user.id, 9999)

    assert exc.value.kind is ErrorKind.NOT_FOUND
    assert exc.value.code == "chapter_not_found"
    assert exc.value.status_code == 404
    assert db_session.query(UserChapterProgress).count() == 0


def test_storage_failure_rolls_back_the_whole_cascade(db_session, user, monkeypatch):
    tree = create_course_tree(db_session, {"L1": ["A"]})
    failure = OperationalError("INSERT INTO user_badges", {}, Exception("disk I/O error"))

    def boom(db, user_id, badge_id):
        raise failure

    monkeypatch.setattr(badge_crud, "award_badge_if_absent", boom)

    with pytest.raises(OperationalError) as exc:
        complete_chapter_for_user(db_session, user.id, tree.chapters["A"].id)

    assert exc.value is failure
    assert db_session.query(UserChapterProgress).count() == 0
    assert db_session.query(UserLessonProgress).count() == 0
    assert db_session.query(UserCourseProgress).count() == 0


def test_integrity_conflict_is_retried(db_session, user, monkeypatch):
    tree = create_course_tree(db_session, {"L1": ["A"]})
    original = progress_crud.mark_course_completed
    calls = {"count": 0}

    def flaky(db, user_id, course_id):
        calls["count"] += 1
        if calls["count"] == 1:
            raise IntegrityError("INSERT INTO user_learning_courses", {}, Exception("UNIQUE constraint failed"))
        return original(db, user_id, course_id)

    monkeypatch.setattr(progress_crud, "mark_course_completed", flaky)

    result = complete_chapter_for_user(db_session, user.id, tree.chapters["A"].id)

    assert calls["count"] == 2
    assert result.course_completed is True
    assert result.badge_awarded is True
    assert db_session.query(UserChapterProgress).count() == 1
    assert _badge_count(db_session, user.id) == 1


def test_integrity_conflict_propagates_after_last_attempt(db_session, user, monkeypatch):
    tree = create_course_tree(db_session, {"L1": ["A"]})
    monkeypatch.setattr(settings, "CASCADE_MAX_ATTEMPTS", 2)
    calls = {"count": 0}

    def always_conflicting(db, user_id, lesson_id):
        calls["count"] += 1
        raise IntegrityError("INSERT INTO user_lessons", {}, Exception("UNIQUE constraint failed"))

    monkeypatch.setattr(progress_crud, "mark_lesson_completed", always_conflicting)

    with pytest.raises(IntegrityError):
        complete_chapter_for_user(db_session, user.id, tree.chapters["A"].id)

    assert calls["count"] == 2
    assert db_session.query(UserChapterProgress).count() == 0


def test_lock_is_skipped_outside_postgresql(db_session):
    progress_crud.lock_course_scope(db_session, 1, 2)


def test_lock_uses_advisory_lock_on_postgresql():
    executed = []
    fake_session = SimpleNamespace(
        get_bind=lambda: SimpleNamespace(dialect=SimpleNamespace(name="postgresql")),
        execute=lambda statement, params: executed.append((str(statement), params)),
    )

    progress_crud.lock_course_scope(fake_session, 7, 42)

    assert executed == [("SELECT pg_advisory_xact_lock(:user_id, :course_id)", {"user_id": 7, "course_id": 42})]


def test_concurrent_last_chapters_complete_course_once(file_engine):
    SessionFactory = sessionmaker(bind=file_engine, autocommit=False, autoflush=False, future=True)

    with SessionFactory() as setup:
        user_id = create_user(setup, username="racer", email="racer@example.com").id
        tree = create_course_tree(setup, {"L1": ["A", "B"], "L2": ["C", "D"]})
        chapters = {name: chapter.id for name, chapter in tree.chapters.items()}
        course_id = tree.course.id
        complete_chapter_for_user(setup, user_id, chapters["A"])
        complete_chapter_for_user(setup, user_id, chapters["C"])

    barrier = threading.Barrier(2)
    results: list[CascadeResult] = []
    errors: list[BaseException] = []

    def worker(chapter_id: int) -> None:
        with SessionFactory() as session:
            try:
                barrier.wait(timeout=10)
                results.append(complete_chapter_for_user(session, user_id, chapter_id))
            except BaseException as exc:  # surfaced by the assertions below
                errors.append(exc)

    threads = [threading.Thread(target=worker, args=(chapters[name],)) for name in ("B", "D")]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    assert errors == []
    assert len(results) == 2
    assert sum(result.lesson_completed for result in results) == 2
    assert sum(result.course_completed for result in results) == 1
    assert sum(result.badge_awarded for result in results) == 1

    with SessionFactory() as check:
        assert check.query(UserCourseProgress).filter_by(user_id=user_id, course_id=course_id, completed=True).count() == 1
        assert check.query(UserBadge).filter_by(user_id=user_id).count() == 1


def test_concurrent_chapters_of_one_lesson_complete_it_once(file_engine):
    SessionFactory = sessionmaker(bind=file_engine, autocommit=False, autoflush=False, future=True)

    with SessionFactory() as setup:
        user_id = create_user(setup, username="sprinter", email="sprinter@example.com").id
        tree = create_course_tree(setup, {"L1": ["A", "B", "C"]})
        chapters = {name: chapter.id for name, chapter in tree.chapters.items()}
        lesson_id = tree.lessons["L1"].id
        course_id = tree.course.id
        complete_chapter_for_user(setup, user_id, chapters["A"])

    barrier = threading.Barrier(2)
    results: list[CascadeResult] = []
    errors: list[BaseException] = []

    def worker(chapter_id: int) -> None:
        with SessionFactory() as session:
            try:
                barrier.wait(timeout=10)
                results.append(complete_chapter_for_user(session, user_id, chapter_id))
            except BaseException as exc:  # surfaced by the assertions below
                errors.append(exc)

    threads = [threading.Thread(target=worker, args=(chapters[name],)) for name in ("B", "C")]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    assert errors == []
    assert len(results) == 2
    assert all(result.chapter_completed for result in results)
    assert sorted(result.lesson_completed for result in results) == [False, True]
    assert sorted(result.badge_awarded for result in results) == [False, True]

    with SessionFactory() as check:
        assert check.query(UserLessonProgress).filter_by(user_id=user_id, lesson_id=lesson_id).count() == 1
        assert check.query(UserCourseProgress).filter_by(user_id=user_id, course_id=course_id).count() == 1
        assert check.query(UserBadge).filter_by(user_id=user_id).count() == 1
