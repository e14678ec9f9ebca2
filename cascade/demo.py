"""Fixed demo datasets installed when a store is empty on first open."""

from __future__ import annotations

from typing import Dict, Tuple


def _goal(last_name: str, goal: str, q1: str, q2: str, q3: str, q4: str, year: str = "2026") -> Dict[str, str]:
    return {"lastName": last_name, "goal": goal, "q1": q1, "q2": q2, "q3": q3, "q4": q4, "year": year}


def _kpi(metric: str, weight_q: str, weight_year: str, q1: str, q2: str, q3: str, q4: str, year: str) -> Dict[str, str]:
    return {
        "lastName": "Иванов И.И.",
        "goal": "Финансовые показатели",
        "metricGoals": metric,
        "weightQ": weight_q,
        "weightYear": weight_year,
        "q1": q1,
        "q2": q2,
        "q3": q3,
        "q4": q4,
        "year": year,
    }


GOALS_DEMO_ROWS: Tuple[Dict[str, str], ...] = (
    _goal("Иванов Иван Иванович", "Рост чистой прибыли", "+5%", "+7%", "+9%", "+12%"),
    _goal("Петров Петр Петрович", "Снижение просроченной задолженности", "-0.3%", "-0.5%", "-0.7%", "-1%"),
    _goal("Сидоров Сергей Сергеевич", "Увеличение доли цифровых продаж", "35%", "40%", "45%", "50%"),
    _goal("Кузнецов Максим Андреевич", "Рост операционной эффективности", "+2%", "+4%", "+6%", "+8%"),
    _goal("Смирнов Алексей Павлович", "Оптимизация затрат на персонал", "-1%", "-2%", "-3%", "-4%"),
    _goal("Попов Николай Викторович", "Развитие корпоративного портфеля", "+4%", "+6%", "+8%", "+10%"),
    _goal("Васильев Артем Николаевич", "Рост клиентской удовлетворенности", "NPS 48", "NPS 52", "NPS 55", "NPS 58"),
    _goal("Новиков Дмитрий Олегович", "Сокращение сроков кредитного решения", "5 дн.", "4 дн.", "3 дн.", "2 дн."),
    _goal("Федоров Илья Сергеевич", "Увеличение комиссионного дохода", "+6%", "+8%", "+10%", "+12%"),
    _goal("Морозов Константин Евгеньевич", "Рост доли ESG-проектов", "8%", "10%", "12%", "15%"),
    _goal("Волков Антон Игоревич", "Повышение точности скоринга", "85%", "88%", "90%", "92%"),
    _goal("Алексеев Павел Дмитриевич", "Оптимизация процессов KYC", "90%", "92%", "94%", "96%"),
    _goal("Лебедев Кирилл Валерьевич", "Развитие продуктовой линейки МСБ", "+2 продукта", "+3 продукта", "+4 продукта", "+5 продукта"),
    _goal("Семенов Роман Николаевич", "Снижение операционных рисков", "-5%", "-8%", "-10%", "-12%"),
    _goal("Егоров Виталий Михайлович", "Рост портфеля ипотеки", "+3%", "+5%", "+7%", "+9%"),
    _goal("Павлов Денис Владимирович", "Развитие партнерских каналов", "4 партнера", "6 партнеров", "8 партнеров", "10 партнеров"),
    _goal("Козлов Аркадий Ильич", "Снижение time-to-market", "8 нед.", "7 нед.", "6 нед.", "5 нед."),
    _goal("Степанов Игорь Семенович", "Рост конверсии лидов", "18%", "20%", "22%", "25%"),
    _goal("Николаев Владислав Петрович", "Повышение киберустойчивости", "95%", "96%", "97%", "98%"),
    _goal("Орлов Тимофей Алексеевич", "Увеличение доли безналичных операций", "62%", "65%", "68%", "70%"),
)

# "М" marks a manually assessed metric with no numeric weight.
KPI_DEMO_ROWS: Tuple[Dict[str, str], ...] = (
    _kpi("Чистая прибыль (Холдинг), млн BYN", "20%", "20%", "24,1", "58,3", "112,1", "205,3", "205,3"),
    _kpi("ЧОД до резервов (Холдинг), млн BYN", "20%", "20%", "146,2", "299,9", "471,7", "702,7", "702,7"),
    _kpi("CIR (Холдинг)", "15%", "15%", "54,4%", "55,1%", "53,1%", "48,4%", "48,4%"),
    _kpi("COR с учетом корпооблигаций (Холдинг)", "10%", "10%", "2,8%", "2,3%", "1,9%", "1,7%", "1,7%"),
    _kpi("NPL default (Банк), млн BYN", "5%", "5%", "310,69", "317,19", "359,50", "378,91", "378,91"),
    _kpi("Отсутствуют нарушения лимитов операционного риска, тыс. BYN", "М", "", "3584,5", "", "", "", ""),
    _kpi("ROE (Холдинг)", "М", "М", "7,6%", "9,0%", "11,3%", "15,1%", "15,1%"),
    _kpi("ROA (Холдинг)", "М", "М", "1,3%", "1,6%", "2,0%", "2,7%", ""),
)
