"""
Demo data seeding script
Creates an admin, an instructor, a student, one course with sections / lessons / quiz
and one lab with sections.

Usage:
    cd scripts
    python seed_demo_data.py

Notes:
    1. The script adds src/backend/ to the Python path
    2. It switches the working directory to src/backend/ so the default SQLite path resolves
    3. Running it twice is safe: it stops when the demo admin already exists
"""
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src', 'backend'))

os.chdir(os.path.join(os.path.dirname(__file__), '..', 'src', 'backend'))
os.makedirs("data", exist_ok=True)

from sqlalchemy.orm import Session

from learnplatform.models import Course, CourseSection, Lab, LabSection, Lesson, User, init_db
from learnplatform.models.user import ROLE_ADMIN, ROLE_INSTRUCTOR
from learnplatform.services.quiz_service import QuizService
from learnplatform.services.user_service import UserService

DEMO_PASSWORD = "demo12345"


def seed_users(db: Session) -> dict:
    admin = UserService.register_user(db, "admin", DEMO_PASSWORD, "admin@example.com", "مدير المنصة", ROLE_ADMIN)
    instructor = UserService.register_user(
        db, "instructor", DEMO_PASSWORD, "instructor@example.com", "م. أحمد", ROLE_INSTRUCTOR
    )
    student = UserService.register_user(db, "student", DEMO_PASSWORD, "student@example.com", "سارة")
    return {"admin": admin, "instructor": instructor, "student": student}


def seed_lab(db: Session, creator: User) -> Lab:
    lab = Lab(
        title="مختبر إعداد جدار الحماية",
        description="ضبط قواعد جدار الحماية على خادم لينكس",
        environment="Ubuntu 22.04",
        instructions=["افتح الطرفية", "فعّل ufw", "أضف القواعد المطلوبة"],
        learning_objectives=["فهم سياسات الحظر الافتراضية"],
        technologies=["ufw", "iptables"],
        icon="shield",
        creator_id=creator.id,
        duration=45,
        level="مبتدئ",
        xp_reward=100,
        is_published=True
    )
    db.add(lab)
    db.flush()

    for order, title in enumerate(["تفعيل الجدار", "فتح المنافذ", "اختبار القواعد"]):
        db.add(LabSection(lab_id=lab.id, title=title, sort_order=order))

    db.commit()
    print(f"✅ Created lab: {lab.title}")
    return lab


def seed_course(db: Session, instructor: User, lab: Lab) -> Course:
    course = Course(
        title="أساسيات أمن الشبكات",
        description="مدخل عملي إلى أمن الشبكات",
        category="security",
        level="مبتدئ",
        price=25,
        instructor_id=instructor.id,
        is_published=True
    )
    db.add(course)
    db.flush()

    intro = CourseSection(course_id=course.id, title="المقدمة", sort_order=0)
    practice = CourseSection(course_id=course.id, title="التطبيق العملي", sort_order=1)
    db.add_all([intro, practice])
    db.flush()

    first = Lesson(course_id=course.id, section_id=intro.id, title="ما هو أمن الشبكات؟",
                   sort_order=0, xp_reward=50, is_published=True)
    second = Lesson(course_id=course.id, section_id=practice.id, title="جدار الحماية",
                    lab_id=lab.id, sort_order=0, xp_reward=50, is_published=True)
    db.add_all([first, second])
    db.commit()

    quiz = QuizService.create_quiz(db, first.id, is_published=True)
    QuizService.add_question(db, quiz.id, "ما الغرض من جدار الحماية؟",
                             ["تسريع الشبكة", "تصفية حركة المرور", "تخزين الملفات"], 1, 0)
    QuizService.add_question(db, quiz.id, "أي بروتوكول يعمل على المنفذ 22؟",
                             ["HTTP", "FTP", "SSH", "DNS"], 2, 1)

    print(f"✅ Created course: {course.title} (2 sections, 2 lessons, 1 quiz)")
    return course


def main():
    from learnplatform.core.database import SessionLocal

    print("🚀 Seeding demo data...")
    init_db()

    db = SessionLocal()
    try:
        if db.query(User).filter(User.username == "admin").first():
            print("Demo data already present, nothing to do")
            return
        users = seed_users(db)
        lab = seed_lab(db, users["instructor"])
        seed_course(db, users["instructor"], lab)
        print(f"✅ Demo users: admin / instructor / student, password: {DEMO_PASSWORD}")
    except Exception as e:
        print(f"❌ Error seeding demo data: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
