# tests/test_classroom.py

from models.classroom import Classroom


def test_classroom_from_dict(sample_classroom):
    assert sample_classroom.id == "c001"
    assert sample_classroom.name == "Intro to Theatre"
    assert sample_classroom.student_count == 3
    assert [task.id for task in sample_classroom.tasks] == ["t001", "t002", "t003"]


def test_classroom_keeps_raw_record(sample_classroom):
    assert sample_classroom.get("teacherEmail") == "teacher@school.edu"
    assert sample_classroom.get("missing", "fallback") == "fallback"


def test_classroom_reads_flat_task_list():
    classroom = Classroom.from_dict(
        {"id": "c002", "name": "Flat", "tasks": [{"id": "t1", "title": "One"}]}
    )
    assert [task.id for task in classroom.tasks] == ["t1"]


def test_classroom_skips_bad_roster_entries():
    classroom = Classroom.from_dict(
        {"id": "c003", "name": "Roster", "students": ["ok@x.com", 12, {"email": ""}]}
    )
    assert [student.email for student in classroom.students] == ["ok@x.com"]


def test_classroom_skips_unreadable_records(classroom_record):
    assignments = classroom_record["tasks"]["assignments"]
    assignments[1]["submissions"].append({"text": "orphan"})
    assignments.append({"title": "No id"})

    classroom = Classroom.from_dict(classroom_record)

    assert [task.id for task in classroom.tasks] == ["t001", "t002", "t003"]
    assert classroom.tasks[1].submission_count == 0


def test_find_student(sample_classroom):
    assert sample_classroom.find_student(" BOB@school.edu").name == "Bob"
    assert sample_classroom.find_student("dave@school.edu") is None


def test_from_response_body_accepts_both_shapes(classroom_record):
    wrapped = Classroom.from_response_body({"classroom": classroom_record})
    bare = Classroom.from_response_body(classroom_record)

    assert wrapped.id == bare.id == "c001"


def test_classroom_to_dict_groups_tasks(sample_classroom):
    data = sample_classroom.to_dict()

    assert data["teacherEmail"] == "teacher@school.edu"
    assert len(data["tasks"]["assignments"]) == 3
    assert data["students"][2] == {"email": "carol@school.edu", "name": "carol@school.edu"}
