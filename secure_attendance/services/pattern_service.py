# secure_attendance/services/pattern_service.py
"""Statistics and rule-based detection over rejected attendance attempts."""
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from flask import current_app
from sqlalchemy.orm import joinedload

from secure_attendance import db
from secure_attendance.models.attendance import AttendanceRecord
from secure_attendance.models.proxy_attempt import ProxyAttemptLog
from secure_attendance.models.student import Student
from secure_attendance.utils.helpers import utcnow

DATE_RANGES = {
    'day': 1,
    'week': 7,
    'month': 30,
    'all': None,
}
DEFAULT_TREND_DAYS = 7
SEVERITY_ORDER = {'critical': 0, 'high': 1, 'medium': 2, 'low': 3}


@dataclass(frozen=True)
class ProxyAttemptFilter:
    date_range: str = 'week'
    attempt_type: Optional[str] = None
    student_id: Optional[int] = None

    def __post_init__(self):
        if self.date_range not in DATE_RANGES:
            raise ValueError(f"date_range must be one of {', '.join(DATE_RANGES)}")


@dataclass(frozen=True)
class SuspiciousPattern:
    type: str
    severity: str
    description: str
    details: Dict[str, Any]
    student_id: Optional[int] = None
    student_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type,
            'severity': self.severity,
            'description': self.description,
            'student_id': self.student_id,
            'student_name': self.student_name,
            'details': self.details
        }


@dataclass
class ProxyAnalysis:
    attempts: List[ProxyAttemptLog]
    stats: Dict[str, Any]
    patterns: List[SuspiciousPattern] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'attempts': [attempt.to_dict() for attempt in self.attempts],
            'stats': self.stats,
            'patterns': [pattern.to_dict() for pattern in self.patterns]
        }


@dataclass(frozen=True)
class _Evidence:
    """One attempt, rejected or verified, reduced to what the rules need."""
    student_id: int
    device_fingerprint: Optional[str]
    ip_address: Optional[str]
    rejected: bool


def _mask(fingerprint: str) -> str:
    return fingerprint[:8] + '...' if len(fingerprint) > 8 else fingerprint


class ProxyPatternAnalyzer:
    """Read-only analysis; safe to run repeatedly."""

    def __init__(self, clock: Callable = utcnow):
        self.clock = clock

    def analyze(self, filters: ProxyAttemptFilter = None) -> ProxyAnalysis:
        filters = filters or ProxyAttemptFilter()
        config = current_app.config
        now = self.clock()
        since = self._since(filters.date_range, now)

        attempts = self._load_attempts(filters, since, config['PROXY_ANALYSIS_MAX_ROWS'])
        verified = self._load_verified(filters, since, config['PROXY_ANALYSIS_MAX_ROWS'])

        stats = self.compute_stats(attempts, filters.date_range, now, config['PROXY_TOP_REASONS'])
        evidence = [
            _Evidence(a.student_id, a.device_fingerprint, a.ip_address, True)
            for a in attempts if a.student_id is not None
        ] + [
            _Evidence(r.student_id, r.device_fingerprint, r.ip_address, False)
            for r in verified
        ]
        patterns = self.detect_patterns(evidence, self._student_names(evidence), config)

        return ProxyAnalysis(attempts=attempts, stats=stats, patterns=patterns)

    def attempt_types(self) -> List[str]:
        """Distinct attempt types present in the log."""
        rows = db.session.query(ProxyAttemptLog.attempt_type).distinct().order_by(
            ProxyAttemptLog.attempt_type
        ).all()
        return [row[0] for row in rows]

    @staticmethod
    def _since(date_range: str, now: datetime) -> Optional[datetime]:
        days = DATE_RANGES[date_range]
        return now - timedelta(days=days) if days else None

    @staticmethod
    def _load_attempts(filters: ProxyAttemptFilter, since, limit: int) -> List[ProxyAttemptLog]:
        query = ProxyAttemptLog.query.options(joinedload(ProxyAttemptLog.student))
        if since is not None:
            query = query.filter(ProxyAttemptLog.created_at >= since)
        if filters.attempt_type:
            query = query.filter(ProxyAttemptLog.attempt_type == filters.attempt_type)
        if filters.student_id:
            query = query.filter(ProxyAttemptLog.student_id == filters.student_id)
        return query.order_by(ProxyAttemptLog.created_at.desc(), ProxyAttemptLog.id.desc()).limit(limit).all()

    @staticmethod
    def _load_verified(filters: ProxyAttemptFilter, since, limit: int) -> List[AttendanceRecord]:
        # Verified marks have no attempt type; a type filter excludes them
        if filters.attempt_type:
            return []
        query = AttendanceRecord.query
        if since is not None:
            query = query.filter(AttendanceRecord.marked_at >= since)
        if filters.student_id:
            query = query.filter(AttendanceRecord.student_id == filters.student_id)
        return query.order_by(AttendanceRecord.marked_at.desc()).limit(limit).all()

    @staticmethod
    def _student_names(evidence: List[_Evidence]) -> Dict[int, str]:
        ids = {item.student_id for item in evidence}
        if not ids:
            return {}
        students = Student.query.filter(Student.id.in_(ids)).all()
        return {student.id: student.full_name for student in students}

    @staticmethod
    def compute_stats(attempts: List[ProxyAttemptLog], date_range: str, now: datetime,
                      top_reasons: int = 10) -> Dict[str, Any]:
        by_type = Counter(a.attempt_type for a in attempts)
        by_reason = Counter(a.failure_reason for a in attempts)

        hourly = {f'{hour:02d}': 0 for hour in range(24)}
        for attempt in attempts:
            hourly[f'{attempt.created_at.hour:02d}'] += 1

        trend_days = DATE_RANGES[date_range] or DEFAULT_TREND_DAYS
        trend = {
            (now - timedelta(days=offset)).date().isoformat(): 0
            for offset in range(trend_days - 1, -1, -1)
        }
        for attempt in attempts:
            key = attempt.created_at.date().isoformat()
            if key in trend:
                trend[key] += 1

        return {
            'total_attempts': len(attempts),
            'unique_students': len({a.student_id for a in attempts if a.student_id}),
            'unique_ips': len({a.ip_address for a in attempts if a.ip_address}),
            'unique_devices': len({a.device_fingerprint for a in attempts if a.device_fingerprint}),
            'attempts_by_type': dict(by_type),
            'attempts_by_reason': dict(by_reason.most_common(top_reasons)),
            'hourly_distribution': hourly,
            'recent_trend': [{'date': day, 'count': count} for day, count in trend.items()]
        }

    @staticmethod
    def detect_patterns(evidence: List[_Evidence], names: Dict[int, str],
                        config) -> List[SuspiciousPattern]:
        patterns = []
        frequency_threshold = config['PROXY_HIGH_FREQUENCY_THRESHOLD']
        devices_threshold = config['PROXY_MULTIPLE_DEVICES_THRESHOLD']
        ip_threshold = config['PROXY_IP_SHARING_THRESHOLD']
        sharing_threshold = config['PROXY_DEVICE_SHARING_THRESHOLD']

        rejected_by_student = Counter(item.student_id for item in evidence if item.rejected)
        devices_by_student = defaultdict(set)
        students_by_ip = defaultdict(set)
        students_by_device = defaultdict(set)
        for item in evidence:
            if item.device_fingerprint:
                devices_by_student[item.student_id].add(item.device_fingerprint)
                students_by_device[item.device_fingerprint].add(item.student_id)
            if item.ip_address:
                students_by_ip[item.ip_address].add(item.student_id)

        for student_id, count in sorted(rejected_by_student.items()):
            if count < frequency_threshold:
                continue
            name = names.get(student_id, 'Unknown')
            patterns.append(SuspiciousPattern(
                type='high_frequency',
                severity=_scaled_severity(count, frequency_threshold),
                description=f'{name} made {count} failed attempts',
                student_id=student_id,
                student_name=name,
                details={'attempt_count': count, 'threshold': frequency_threshold}
            ))

        for student_id, devices in sorted(devices_by_student.items()):
            device_count = len(devices)
            if device_count < devices_threshold:
                continue
            if device_count >= 2 * devices_threshold:
                severity = 'critical'
            elif device_count >= devices_threshold + 2:
                severity = 'high'
            else:
                severity = 'medium'
            name = names.get(student_id, 'Unknown')
            patterns.append(SuspiciousPattern(
                type='multiple_devices',
                severity=severity,
                description=f'{name} attempted from {device_count} different devices',
                student_id=student_id,
                student_name=name,
                details={'device_count': device_count, 'devices': sorted(_mask(d) for d in devices)}
            ))

        for ip, students in sorted(students_by_ip.items()):
            if len(students) < ip_threshold:
                continue
            if len(students) >= ip_threshold + 2:
                severity = 'critical'
            elif len(students) >= ip_threshold + 1:
                severity = 'high'
            else:
                severity = 'medium'
            patterns.append(_sharing_pattern(
                'ip_sharing', severity,
                f'{len(students)} different students attempted from IP {ip}',
                {'ip': ip}, students, names
            ))

        for fingerprint, students in sorted(students_by_device.items()):
            if len(students) < sharing_threshold:
                continue
            severity = 'critical' if len(students) > sharing_threshold else 'high'
            patterns.append(_sharing_pattern(
                'device_sharing', severity,
                f'Same device used by {len(students)} different students',
                {'device_fingerprint': _mask(fingerprint)}, students, names
            ))

        return sorted(patterns, key=lambda p: SEVERITY_ORDER[p.severity])


def _scaled_severity(count: int, threshold: int) -> str:
    ratio = count / threshold
    if ratio >= 4:
        return 'critical'
    if ratio >= 3:
        return 'high'
    if ratio >= 2:
        return 'medium'
    return 'low'


def _sharing_pattern(kind: str, severity: str, description: str, details: Dict[str, Any],
                     students: set, names: Dict[int, str]) -> SuspiciousPattern:
    student_ids = sorted(students)
    details = dict(details)
    details.update({
        'student_count': len(student_ids),
        'student_ids': student_ids,
        'student_names': [names.get(student_id, 'Unknown') for student_id in student_ids]
    })
    return SuspiciousPattern(type=kind, severity=severity, description=description, details=details)
