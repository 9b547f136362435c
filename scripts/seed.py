# scripts/seed.py
from __future__ import annotations

import os
from datetime import date, timedelta

from sqlalchemy import select, text
from sqlalchemy.exc import OperationalError, ProgrammingError
from sqlalchemy.orm import Session

from app.db import get_db
from app.models.professional import Professional
from app.services.errors import ScheduleError
from app.services.overlays import create_block, create_exception, whole_day_bounds
from app.services.periods import open_group
from app.services.schedule_mutation import (
    WeekdayWindow,
    load_groups,
    replace_period,
)
from app.utils.tz import facility_today

SEED_FUTURE_DAYS = int(os.getenv("SEED_FUTURE_DAYS", "30"))

# ---------------- Dados de Exemplo ----------------
# weekday: 0=domingo ... 6=sábado
PROFESSIONALS_DATA = [
    {
        "name": "Dra. Ana Souza",
        "speciality": "Psicopedagogia",
        "current": [(1, "09:00", "12:00"), (3, "09:00", "12:00"), (5, "09:00", "12:00")],
        "future": [(1, "14:00", "18:00"), (4, "14:00", "18:00")],
    },
    {
        "name": "Dr. Bruno Lima",
        "speciality": "Fonoaudiologia",
        "current": [(2, "14:00", "17:00"), (4, "14:00", "17:00")],
        "future": None,
    },
    {
        # só datas pontuais
        "name": "Dra. Carla Dias",
        "speciality": "Terapia Ocupacional",
        "current": [],
        "future": None,
    },
]


def get_session() -> Session:
    gen = get_db()
    session: Session = next(gen)
    return session


def _windows(items) -> list[WeekdayWindow]:
    return [WeekdayWindow(wd, start, end) for wd, start, end in items]


def _next_weekday(start: date, weekday: int) -> date:
    """Próxima data (a partir de amanhã) com o weekday 0=domingo ... 6=sábado."""
    d = start + timedelta(days=1)
    while (d.weekday() + 1) % 7 != weekday:
        d += timedelta(days=1)
    return d


def ensure_professionals(db: Session) -> list[tuple[Professional, dict]]:
    out = []
    for data in PROFESSIONALS_DATA:
        prof = db.execute(
            select(Professional).where(Professional.name == data["name"])
        ).scalar_one_or_none()
        if not prof:
            prof = Professional(
                name=data["name"], speciality=data["speciality"], is_active=True
            )
            db.add(prof)
            db.commit()
            db.refresh(prof)
            print(f"[Seed] Profissional criado: {prof.name}")
        out.append((prof, data))
    return out


def ensure_schedule(db: Session, prof: Professional, data: dict, today: date) -> None:
    if open_group(load_groups(db, prof.id, today)) is not None:
        print(f"[Seed] {prof.name}: agenda já configurada, pulando")
        return

    replace_period(db, prof.id, _windows(data["current"]), today, today=today)
    print(f"[Seed] {prof.name}: período vigente a partir de {today.isoformat()}")

    if data["future"]:
        starts = today + timedelta(days=SEED_FUTURE_DAYS)
        replace_period(db, prof.id, _windows(data["future"]), starts, today=today)
        print(f"[Seed] {prof.name}: período futuro a partir de {starts.isoformat()}")


def ensure_overlays(db: Session, prof: Professional, data: dict, today: date) -> None:
    # um sábado de atendimento extra
    saturday = _next_weekday(today, 6)
    try:
        create_exception(
            db,
            prof.id,
            saturday,
            "08:00",
            "12:00",
            observations="Mutirão de avaliações",
        )
        print(f"[Seed] {prof.name}: data pontual em {saturday.isoformat()}")
    except ScheduleError as exc:
        print(f"[Seed] {prof.name}: data pontual ignorada ({exc.message})")

    if not data["current"]:
        return
    # um dia inteiro bloqueado no primeiro dia de atendimento da semana que vem
    first_weekday = data["current"][0][0]
    day = _next_weekday(today + timedelta(days=6), first_weekday)
    starts_at, ends_at = whole_day_bounds(day)
    create_block(db, prof.id, starts_at, ends_at, today=today, reason="Congresso")
    print(f"[Seed] {prof.name}: bloqueio em {day.isoformat()}")


def check_tables_exist(db: Session) -> bool:
    required_tables = [
        "professionals",
        "weekly_schedule_entries",
        "schedule_exceptions",
        "block_periods",
    ]
    try:
        for table in required_tables:
            db.execute(text(f"SELECT 1 FROM {table} LIMIT 1"))
        return True
    except (ProgrammingError, OperationalError):
        db.rollback()
        return False


def main():
    print("[Seed] Iniciando seed do banco de dados...")
    db = None
    try:
        db = get_session()

        if not check_tables_exist(db):
            print("[Seed] Erro: as tabelas ainda não foram criadas.")
            print("  Execute as migrações antes: alembic upgrade head")
            return

        today = facility_today()
        for prof, data in ensure_professionals(db):
            ensure_schedule(db, prof, data, today)
            ensure_overlays(db, prof, data, today)

        print("\n[Seed] Concluído!")
    except Exception as e:
        print(f"[Seed] Erro durante o seed: {e}")
        raise
    finally:
        if db:
            db.close()


if __name__ == "__main__":
    main()
