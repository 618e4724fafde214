import csv
import io
import json
import zipfile

from ulasis.app.services.export import DataExporter, export_user_data_to_json, export_user_data_to_zip
from ulasis.app.services.questionnaires import build_question


def test_export_only_contains_own_rows(db, user, make_user, make_questionnaire, make_qr_code, make_review):
    questionnaire = make_questionnaire(user, title="Milik saya")
    questionnaire.questions.append(build_question({
        "question_text": "Pilih", "question_type": "dropdown", "options": ["A", "B"],
    }))
    db.commit()
    make_qr_code(questionnaire, location_tag="Kasir")
    make_review(user, questionnaire, topics=["Harga", "Suasana"])

    stranger = make_user()
    make_review(stranger, make_questionnaire(stranger, title="Bukan"))

    data = DataExporter(db, user.user_id).export_to_json()
    assert [q["title"] for q in data["questionnaires"]] == ["Milik saya"]
    assert data["questions"][0]["options"] == "A|B"
    assert data["qr_codes"][0]["location_tag"] == "Kasir"
    assert len(data["reviews"]) == 1
    assert data["reviews"][0]["topics"] == "Harga|Suasana"


def test_deleted_rows_are_skipped(db, user, make_questionnaire):
    questionnaire = make_questionnaire(user)
    questionnaire.soft_delete()
    db.commit()
    assert DataExporter(db, user.user_id).export_to_json()["questionnaires"] == []


def test_csv_tables(db, user, make_questionnaire, make_review):
    make_review(user, make_questionnaire(user), comment="Enak, tapi mahal")
    tables = DataExporter(db, user.user_id).export_to_csv()
    assert tables["qr_codes.csv"] == ""
    rows = list(csv.DictReader(io.StringIO(tables["reviews.csv"])))
    assert rows[0]["comment"] == "Enak, tapi mahal"
    assert rows[0]["sentiment"] == "positive"


def test_json_and_zip_helpers(db, user, make_questionnaire):
    make_questionnaire(user, title="Kopi")
    assert json.loads(export_user_data_to_json(db, user.user_id))["questionnaires"][0]["title"] == "Kopi"
    with zipfile.ZipFile(io.BytesIO(export_user_data_to_zip(db, user.user_id))) as archive:
        assert "Kopi" in archive.read("questionnaires.csv").decode()
