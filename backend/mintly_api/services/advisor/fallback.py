"""Deterministic, network-free advice in the provider output shape.

Every figure is read from the snapshot, and every division is guarded. Any snapshot,
including one with no transactions, budgets or income, yields a schema-valid result.
"""

from __future__ import annotations

from typing import Any, Dict, List

from mintly_api.services.finance.aggregate import AdvisorSnapshot
from mintly_api.services.finance.common import clamp, round_money

from .contracts import ProviderOutput

RECURRING_ACTION_RATIO = 0.35
RECURRING_WARNING_RATIO = 0.45
MAX_LINES = 8
MAX_LINE_LENGTH = 320

FALLBACK_COPY: Dict[str, Dict[str, Any]] = {
    "en": {
        "summary": (
            "Your monthly view is ready. Keep your cashflow positive, protect an emergency buffer, "
            "and optimize recurring expenses first."
        ),
        "summary_negative": (
            "Your monthly view is ready. Spending is above income this month, so stabilize cashflow first "
            "and pause non-essential costs before new commitments."
        ),
        "savings_actions": [
            "Review discretionary expenses and set one weekly cap.",
            "Transfer savings right after income lands to avoid drift.",
            "Delay one non-essential purchase this week.",
        ],
        "auto_transfer": "Set an automatic transfer after each salary date toward your savings account.",
        "investment_guidance": [
            "Build emergency reserves before taking higher volatility.",
            "Diversify and invest with fixed intervals instead of timing the market.",
            "Re-check your allocation once per month.",
        ],
        "tips": [
            "Use weekly check-ins to catch overspending early.",
            "Prefer fixed bills negotiation before cutting essentials.",
            "Track one category deeply each month for better control.",
        ],
        "quick_wins": [
            "Pause one subscription you did not use this month.",
            "Batch grocery shopping once per week.",
            "Set transport spending alerts.",
        ],
        "profiles": {
            "low": (
                "Low Risk Path",
                "Preserve capital with high liquidity and predictable returns.",
                ["Emergency fund account", "Short-term deposits", "Low-volatility funds"],
            ),
            "medium": (
                "Balanced Path",
                "Balance growth with volatility tolerance over a longer horizon.",
                ["Broad index funds", "Bond + equity mix", "Periodic rebalancing"],
            ),
            "high": (
                "Growth Path",
                "Higher upside with larger drawdowns; suitable only with strong reserves.",
                ["Higher-equity allocation", "Sector concentration limits", "Strict risk limits"],
            ),
        },
        "not_available": "n/a",
        "finding_mom": "Versus last month, income changed {income_mom} and expenses changed {expense_mom}.",
        "finding_driver": "{name} is the main expense driver, up {delta} from last month.",
        "finding_top_category": "{name} is your largest spending category at {share}% of expenses.",
        "finding_recurring": "Recurring payments take about {pct}% of this month's expenses.",
        "finding_budget": "Budgets: {over} over limit and {near} near limit out of {tracked} tracked.",
        "finding_anomalies": "{count} unusually large transactions were detected this month.",
        "finding_cashflow": "Net cashflow this month is {net} with a savings rate of {rate}%.",
        "action_budget": "Set a hard weekly spending cap for {names}.",
        "action_recurring": "Review subscriptions and recurring bills, then cancel or renegotiate at least one.",
        "action_anomalies": "Verify the flagged large transactions and recategorize them if needed.",
        "warning_negative": "Cashflow is negative this month ({net}). Cover the gap before adding new commitments.",
        "warning_savings": "Savings rate is {rate}%, below your {target}% target.",
        "warning_budget": "Budget exceeded for {name}.",
        "warning_recurring": "Recurring costs take {pct}% of expenses, which limits flexibility.",
        "warning_anomalies": "{count} unusual transactions need a quick review.",
    },
    "tr": {
        "summary": (
            "Aylık görünüm hazır. Nakit akışını pozitif tutup önce acil durum yastığını güçlendir, "
            "sonra düzenli giderleri optimize et."
        ),
        "summary_negative": (
            "Aylık görünüm hazır. Bu ay giderler geliri aşıyor; önce nakit akışını dengele ve "
            "yeni taahhütlerden önce zorunlu olmayan harcamaları durdur."
        ),
        "savings_actions": [
            "Değişken harcamalara haftalık tavan koy.",
            "Gelir yattığında birikimi otomatik ayır.",
            "Bu hafta zorunlu olmayan bir harcamayı ertele.",
        ],
        "auto_transfer": "Maaş gününden hemen sonra birikim hesabına otomatik transfer tanımla.",
        "investment_guidance": [
            "Yüksek oynaklığa geçmeden önce acil durum birikimini tamamla.",
            "Piyasayı zamanlamak yerine düzenli periyotlarla yatırım yap.",
            "Dağılımını ayda bir kez kontrol et.",
        ],
        "tips": [
            "Aşırı harcamayı erken görmek için haftalık kontrol yap.",
            "Temel ihtiyaçları kısmadan önce sabit faturaları pazarlık et.",
            "Her ay bir kategoriyi derin takip et.",
        ],
        "quick_wins": [
            "Bu ay kullanmadığın bir aboneliği duraklat.",
            "Market alışverişini haftada bir toplu yap.",
            "Ulaşım harcaması için uyarı limiti koy.",
        ],
        "profiles": {
            "low": (
                "Düşük Risk Planı",
                "Sermayeyi koruyup likiditeyi yüksek tutmayı hedefler.",
                ["Acil durum birikim hesabı", "Kısa vadeli mevduat", "Düşük oynaklık fonları"],
            ),
            "medium": (
                "Dengeli Plan",
                "Uzun vadede büyüme ve dalgalanma arasında denge kurar.",
                ["Geniş endeks fonları", "Tahvil + hisse dengesi", "Periyodik dengeleme"],
            ),
            "high": (
                "Büyüme Planı",
                "Yüksek getiri potansiyeli karşılığında daha büyük dalgalanma içerir.",
                ["Daha yüksek hisse ağırlığı", "Sektör yoğunluğu sınırı", "Sıkı risk limitleri"],
            ),
        },
        "not_available": "yok",
        "finding_mom": "Geçen aya göre gelir {income_mom}, gider {expense_mom} değişti.",
        "finding_driver": "Gider artışının ana kaynağı {name}; geçen aya göre {delta} arttı.",
        "finding_top_category": "En büyük harcama kalemin {name}, giderlerin %{share} kadarı.",
        "finding_recurring": "Düzenli ödemeler bu ayki giderlerin yaklaşık %{pct} kadarını oluşturuyor.",
        "finding_budget": "Bütçeler: takip edilen {tracked} bütçeden {over} limit aşımında, {near} limite yakın.",
        "finding_anomalies": "Bu ay {count} olağandışı büyük işlem tespit edildi.",
        "finding_cashflow": "Bu ayki net nakit akışı {net}, birikim oranı %{rate}.",
        "action_budget": "{names} için haftalık kesin harcama limiti belirle.",
        "action_recurring": "Abonelikleri ve düzenli faturaları gözden geçir, en az birini iptal et ya da yeniden pazarlık et.",
        "action_anomalies": "İşaretlenen büyük işlemleri doğrula, gerekirse kategorisini düzelt.",
        "warning_negative": "Bu ay nakit akışı negatif ({net}). Yeni taahhütlerden önce açığı kapat.",
        "warning_savings": "Birikim oranı %{rate}, %{target} hedefinin altında.",
        "warning_budget": "{name} bütçesi aşıldı.",
        "warning_recurring": "Düzenli giderler harcamaların %{pct} kadarını alıyor ve esnekliği azaltıyor.",
        "warning_anomalies": "{count} olağandışı işlem kontrol edilmeli.",
    },
    "ru": {
        "summary": (
            "Месячный анализ готов. Сначала стабилизируйте денежный поток и резерв, "
            "затем оптимизируйте регулярные расходы."
        ),
        "summary_negative": (
            "Месячный анализ готов. Расходы в этом месяце превышают доходы: сначала стабилизируйте "
            "денежный поток и приостановите необязательные траты."
        ),
        "savings_actions": [
            "Установите недельный лимит на необязательные траты.",
            "Автоматически откладывайте деньги сразу после поступления дохода.",
            "Отложите одну необязательную покупку на эту неделю.",
        ],
        "auto_transfer": "Настройте автоперевод в сбережения сразу после дня поступления зарплаты.",
        "investment_guidance": [
            "Сначала сформируйте резервный фонд перед ростом риска.",
            "Инвестируйте регулярно, а не пытайтесь угадывать рынок.",
            "Проверяйте распределение активов раз в месяц.",
        ],
        "tips": [
            "Проводите еженедельный контроль расходов.",
            "Сначала оптимизируйте фиксированные платежи, затем переменные траты.",
            "Каждый месяц детально анализируйте одну категорию.",
        ],
        "quick_wins": [
            "Отключите одну подписку, которой не пользовались в этом месяце.",
            "Покупайте продукты одним крупным походом в неделю.",
            "Поставьте лимиты-уведомления на транспорт.",
        ],
        "profiles": {
            "low": (
                "Консервативный профиль",
                "Сохранение капитала и высокая ликвидность.",
                ["Резервный счет", "Краткосрочные депозиты", "Фонды с низкой волатильностью"],
            ),
            "medium": (
                "Сбалансированный профиль",
                "Баланс между ростом и риском на длинном горизонте.",
                ["Широкие индексные фонды", "Смесь облигаций и акций", "Периодическая ребалансировка"],
            ),
            "high": (
                "Агрессивный профиль",
                "Выше потенциал доходности, но выше просадки.",
                ["Более высокая доля акций", "Ограничение концентрации по секторам", "Жесткие риск-лимиты"],
            ),
        },
        "not_available": "н/д",
        "finding_mom": "По сравнению с прошлым месяцем доходы изменились на {income_mom}, расходы на {expense_mom}.",
        "finding_driver": "Главный драйвер расходов: {name}, рост на {delta} к прошлому месяцу.",
        "finding_top_category": "Крупнейшая категория расходов: {name}, {share}% всех трат.",
        "finding_recurring": "Регулярные платежи составляют около {pct}% расходов этого месяца.",
        "finding_budget": "Бюджеты: из {tracked} отслеживаемых превышено {over}, близко к лимиту {near}.",
        "finding_anomalies": "В этом месяце обнаружено необычно крупных операций: {count}.",
        "finding_cashflow": "Чистый денежный поток за месяц {net}, норма сбережений {rate}%.",
        "action_budget": "Установите жесткий недельный лимит для: {names}.",
        "action_recurring": "Пересмотрите подписки и регулярные счета, отмените или пересогласуйте хотя бы один.",
        "action_anomalies": "Проверьте отмеченные крупные операции и при необходимости измените их категорию.",
        "warning_negative": "Денежный поток в этом месяце отрицательный ({net}). Закройте разрыв до новых обязательств.",
        "warning_savings": "Норма сбережений {rate}%, ниже цели {target}%.",
        "warning_budget": "Превышен бюджет: {name}.",
        "warning_recurring": "Регулярные расходы занимают {pct}% трат и снижают гибкость.",
        "warning_anomalies": "Необычные операции для проверки: {count}.",
    },
}


def fallback_copy(language: str) -> Dict[str, Any]:
    return FALLBACK_COPY.get(language, FALLBACK_COPY["en"])


def format_amount(value: float, currency: str | None = None) -> str:
    text = f"{round_money(value):,.2f}"
    return f"{text} {currency}" if currency else text


def _format_percent(value: float) -> str:
    rounded = round_money(value)
    if float(rounded).is_integer():
        return str(int(rounded))
    return f"{rounded:.1f}"


def _format_mom(value: float | None, copy: Dict[str, Any]) -> str:
    if value is None:
        return copy["not_available"]
    sign = "+" if value > 0 else ""
    return f"{sign}{_format_percent(value)}%"


def clip_line(text: str, limit: int = MAX_LINE_LENGTH) -> str:
    """Cut a rendered line to the contract limit, marking the cut with an ellipsis."""
    text = str(text or "").strip()
    if len(text) <= limit:
        return text
    return f"{text[: limit - 3].rstrip()}..."


def _dedupe_keep_order(items: List[str]) -> List[str]:
    seen: set[str] = set()
    deduped: List[str] = []
    for item in items:
        key = clip_line(item)
        if not key or key in seen:
            continue
        seen.add(key)
        deduped.append(key)
    return deduped


def order_profiles(copy: Dict[str, Any], preferred: str) -> List[Dict[str, Any]]:
    """All three risk levels, with the preferred one first."""
    levels = ["low", "medium", "high"]
    if preferred in levels:
        levels.remove(preferred)
        levels.insert(0, preferred)
    profiles = []
    for level in levels:
        title, rationale, options = copy["profiles"][level]
        profiles.append({"level": level, "title": title, "rationale": rationale, "options": list(options)})
    return profiles


def _findings(snapshot: AdvisorSnapshot, copy: Dict[str, Any]) -> List[str]:
    signals = snapshot.signals
    budget = snapshot.budget_adherence
    lines: List[str] = []

    income_mom = signals.get("incomeMoMPercent")
    expense_mom = signals.get("expenseMoMPercent")
    if income_mom is not None or expense_mom is not None:
        lines.append(
            copy["finding_mom"].format(
                income_mom=_format_mom(income_mom, copy),
                expense_mom=_format_mom(expense_mom, copy),
            )
        )

    driver = signals.get("topExpenseDriver")
    if driver:
        lines.append(
            copy["finding_driver"].format(
                name=driver["name"],
                delta=format_amount(driver["deltaAmount"], snapshot.currency),
            )
        )
    elif snapshot.category_breakdown:
        top = snapshot.category_breakdown[0]
        lines.append(copy["finding_top_category"].format(name=top["name"], share=_format_percent(top["sharePercent"])))

    burden = float(signals.get("recurringBurdenRatio") or 0)
    if float(signals.get("recurringMonthlyTotal") or 0) > 0 and burden > 0:
        lines.append(copy["finding_recurring"].format(pct=_format_percent(burden * 100)))

    if budget["trackedCount"] > 0:
        lines.append(
            copy["finding_budget"].format(
                over=budget["overLimitCount"],
                near=budget["nearLimitCount"],
                tracked=budget["trackedCount"],
            )
        )

    anomaly_count = len(signals.get("anomalies") or [])
    if anomaly_count > 0:
        lines.append(copy["finding_anomalies"].format(count=anomaly_count))

    if not lines:
        lines.append(
            copy["finding_cashflow"].format(
                net=format_amount(snapshot.overview["currentMonthNet"], snapshot.currency),
                rate=_format_percent(snapshot.overview["savingsRate"] * 100),
            )
        )
    return _dedupe_keep_order(lines)[:MAX_LINES]


def _actions(snapshot: AdvisorSnapshot, copy: Dict[str, Any]) -> List[str]:
    lines = list(copy["savings_actions"])
    overspending = snapshot.flags.get("overspendingCategoryNames") or []
    if overspending:
        lines.append(copy["action_budget"].format(names=", ".join(overspending[:3])))
    if float(snapshot.signals.get("recurringBurdenRatio") or 0) >= RECURRING_ACTION_RATIO:
        lines.append(copy["action_recurring"])
    if snapshot.signals.get("anomalies"):
        lines.append(copy["action_anomalies"])
    return _dedupe_keep_order(lines)[:MAX_LINES]


def _warnings(snapshot: AdvisorSnapshot, copy: Dict[str, Any]) -> List[str]:
    overview = snapshot.overview
    lines: List[str] = []
    if snapshot.flags.get("negativeCashflow"):
        lines.append(copy["warning_negative"].format(net=format_amount(overview["currentMonthNet"], snapshot.currency)))

    target = snapshot.savings_target_rate
    rate_pct = overview["savingsRate"] * 100
    if overview["currentMonthIncome"] > 0 and rate_pct < target:
        lines.append(copy["warning_savings"].format(rate=_format_percent(rate_pct), target=_format_percent(target)))

    for name in snapshot.flags.get("overspendingCategoryNames") or []:
        lines.append(copy["warning_budget"].format(name=name))

    burden = float(snapshot.signals.get("recurringBurdenRatio") or 0)
    if burden >= RECURRING_WARNING_RATIO:
        lines.append(copy["warning_recurring"].format(pct=_format_percent(burden * 100)))

    anomaly_count = len(snapshot.signals.get("anomalies") or [])
    if anomaly_count > 0:
        lines.append(copy["warning_anomalies"].format(count=anomaly_count))
    return _dedupe_keep_order(lines)[:MAX_LINES]


def fallback_savings(snapshot: AdvisorSnapshot, copy: Dict[str, Any]) -> Dict[str, Any]:
    target_rate = clamp(snapshot.savings_target_rate / 100, 0.0, 1.0)
    return {
        "targetRate": target_rate,
        "monthlyTargetAmount": round_money(max(0.0, snapshot.overview["currentMonthIncome"] * target_rate)),
        "next7DaysActions": list(copy["savings_actions"]),
        "autoTransferSuggestion": copy["auto_transfer"],
    }


def fallback_cut_candidates(snapshot: AdvisorSnapshot, copy: Dict[str, Any]) -> List[Dict[str, Any]]:
    categories = snapshot.category_breakdown[:3]
    if categories:
        return [
            {
                "label": clip_line(item["name"], 120),
                "suggestedReductionPercent": 12 if item["total"] > 0 else 8,
                "alternativeAction": copy["quick_wins"][0],
            }
            for item in categories
        ]
    return [
        {
            "label": copy["quick_wins"][1],
            "suggestedReductionPercent": 10,
            "alternativeAction": copy["quick_wins"][2],
        }
    ]


def build_fallback_advice(snapshot: AdvisorSnapshot, language: str) -> ProviderOutput:
    copy = fallback_copy(language)
    negative = snapshot.overview["currentMonthNet"] < 0
    guidance = [
        *copy["investment_guidance"],
        copy["tips"][0] if snapshot.total_balance > 0 else copy["tips"][1],
    ]
    payload = {
        "summary": copy["summary_negative"] if negative else copy["summary"],
        "topFindings": _findings(snapshot, copy),
        "suggestedActions": _actions(snapshot, copy),
        "warnings": _warnings(snapshot, copy),
        "savings": fallback_savings(snapshot, copy),
        "investment": {
            "profiles": order_profiles(copy, snapshot.risk_profile),
            "guidance": guidance,
        },
        "expenseOptimization": {
            "cutCandidates": fallback_cut_candidates(snapshot, copy),
            "quickWins": list(copy["quick_wins"]),
        },
        "tips": list(copy["tips"]),
    }
    return ProviderOutput.model_validate(payload)
