"""
Domain errors and the user-facing (Arabic) messages

Services raise these; routers turn them into HTTPException with the matching status.
All of them subclass ValueError so callers that only care about "the operation was
refused" can keep catching ValueError.
"""
from fastapi import HTTPException, status

MESSAGES = {
    "server_error": "خطأ في الخادم",
    "invalid_data": "بيانات غير صالحة",
    "login_required": "غير مصرح - يرجى تسجيل الدخول",
    "user_not_found": "المستخدم غير موجود",
    "admin_required": "غير مصرح - صلاحيات المدير مطلوبة",
    "reviewer_required": "غير مصرح - صلاحيات المدرس مطلوبة",
    "invalid_credentials": "اسم المستخدم أو كلمة المرور غير صحيحة",
    "username_taken": "اسم المستخدم مستخدم مسبقاً",
    "email_taken": "البريد الإلكتروني مستخدم مسبقاً",
    "invalid_xp_amount": "قيمة نقاط الخبرة يجب أن تكون عدداً موجباً",
    "course_not_found": "الدورة غير موجودة",
    "lesson_not_found": "الدرس غير موجود",
    "enrollment_not_found": "طلب التسجيل غير موجود",
    "already_enrolled": "المستخدم مسجل بالفعل في هذه الدورة",
    "invalid_payment_method": "طريقة الدفع غير صحيحة",
    "enrollment_required": "يجب التسجيل في الدورة للوصول للمحتوى",
    "quiz_not_found": "الكويز غير موجود",
    "quiz_exists": "هذا الدرس لديه كويز بالفعل",
    "question_not_found": "السؤال غير موجود",
    "invalid_question": "بيانات السؤال غير صالحة",
    "lab_not_found": "المختبر غير موجود",
    "section_not_found": "القسم غير موجود",
    "submission_not_found": "طلب المختبر غير موجود",
    "invalid_review_status": "حالة المراجعة غير صحيحة",
    "sections_not_approved": "يجب اعتماد جميع أقسام المختبر قبل إكماله",
}


class NotFoundError(ValueError):
    """Referenced row does not exist (404)"""


class BadRequestError(ValueError):
    """Request is well-formed but not acceptable (400)"""


class ForbiddenError(ValueError):
    """Caller is identified but not allowed (403)"""


def to_http_exception(error: ValueError) -> HTTPException:
    """Map a service error to the HTTP status routers answer with"""
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, ForbiddenError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(error))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
