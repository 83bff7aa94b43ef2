"""Sentence banks for the local template engine, keyed by language and advice category."""

from __future__ import annotations

from typing import Dict, Iterable, List

CATEGORY_KEYS = (
    "spending",
    "income",
    "savings",
    "risk",
    "subscriptions",
    "goals",
    "cashflow",
    "debt",
    "investing",
    "budgeting",
)

MONTH_NAMES = {
    "en": [
        "January", "February", "March", "April", "May", "June",
        "July", "August", "September", "October", "November", "December",
    ],
    "tr": [
        "Ocak", "Şubat", "Mart", "Nisan", "Mayıs", "Haziran",
        "Temmuz", "Ağustos", "Eylül", "Ekim", "Kasım", "Aralık",
    ],
    "ru": [
        "январь", "февраль", "март", "апрель", "май", "июнь",
        "июль", "август", "сентябрь", "октябрь", "ноябрь", "декабрь",
    ],
}


def combine(first: Iterable[str], second: Iterable[str]) -> List[str]:
    """Every opener joined with every closer."""
    closers = list(second)
    return [" ".join(f"{a} {b}".split()) for a in first for b in closers]


_EN: Dict[str, Dict[str, List[str]]] = {
    "summaries": {
        "spending": combine(
            [
                "In {monthName}, spending momentum is being shaped by {topCategory}.",
                "{topCategory} is the main pressure point in this month's expense mix.",
                "Expenses in {monthName} are clustering around {topCategory}.",
            ],
            [
                "A weekly cap is the quickest way to absorb the {spendDeltaPct}% change.",
                "Small early corrections protect margin without drastic cuts.",
            ],
        ),
        "income": combine(
            [
                "Income moved by {incomeDeltaPct}% in {monthName}, which changes your planning room.",
                "Your inflows shifted by {incomeDeltaPct}% and deserve a second planning scenario.",
                "The income signal this month is strong enough to affect every budget decision.",
            ],
            [
                "Route the change into reserves before lifestyle spending grows.",
                "Use it as a planning lever rather than a reason to relax controls.",
            ],
        ),
        "savings": combine(
            [
                "Your savings rate is around {savingsRatePct}%, which is measurable and improvable.",
                "Savings behavior in {monthName} is visible and steady enough to optimize.",
                "There is clear savings traction this month, short of full acceleration.",
            ],
            [
                "A scheduled transfer can close the gap toward {targetSavingsRatePct}%.",
                "Weekly automation beats end-of-month decisions for consistency.",
            ],
        ),
        "risk": combine(
            [
                "Risk signals this month are mostly about pace and threshold pressure.",
                "Your risk picture stays manageable, but early indicators are getting louder.",
                "The current pattern calls for preventive controls instead of reactive cuts.",
            ],
            [
                "Lower alert thresholds now to avoid expensive fixes later.",
                "Acting early keeps volatility contained.",
            ],
        ),
        "subscriptions": combine(
            [
                "Recurring commitments are narrowing budget flexibility.",
                "Subscriptions are acting like a hidden fixed-cost floor this month.",
                "Repeated charges are compressing room for tactical adjustments.",
            ],
            [
                "A usage-based cleanup can free cash right away.",
                "Repricing or pruning low-value plans usually pays off fast.",
            ],
        ),
        "goals": combine(
            [
                "Your goals are clear, so execution rhythm is now the key variable.",
                "The plan is coherent and consistency will decide the outcome.",
                "{monthName} gives enough signal to turn goals into routines.",
            ],
            [
                "Short checkpoints keep drift low and progress visible.",
                "Scheduling the next actions is the highest-leverage move.",
            ],
        ),
        "cashflow": combine(
            [
                "Net cashflow closed around {netAmount} for {monthName}.",
                "The month-end cashflow reading is {netAmount}, a clear operating signal.",
                "Cashflow in {monthName} settled near {netAmount}.",
            ],
            [
                "Better payment timing can improve stability before income changes.",
                "Managing flows weekly will smooth stress across the month.",
            ],
        ),
        "debt": combine(
            [
                "Debt service is still consuming a meaningful share of planning capacity.",
                "Repayments remain a drag on monthly flexibility.",
                "This month suggests repayment order should be tightened.",
            ],
            [
                "Clearing the most expensive balance first is usually the fastest relief.",
                "Aligning due dates with inflows lowers penalty risk.",
            ],
        ),
        "investing": combine(
            [
                "The current setup supports disciplined investing while liquidity stays protected.",
                "You have a reasonable base for rule-based portfolio steps.",
                "Investment decisions can move from ad-hoc to systematic this cycle.",
            ],
            [
                "Phased entries and diversification should remain the default.",
                "Keep reserves intact while growing long-term positions.",
            ],
        ),
        "budgeting": combine(
            [
                "Budget limits are approaching stress zones in some categories.",
                "Category usage signals that limits need a tighter cadence.",
                "The budget frame still works, but threshold discipline has to improve.",
            ],
            [
                "{overBudgetCount} over-limit and {nearBudgetCount} near-limit budgets need structured control.",
                "Splitting monthly limits into weekly slices reduces month-end pressure.",
            ],
        ),
    },
    "findings": {
        "spending": combine(
            [
                "{topCategory} is the strongest expense driver right now.",
                "Spending concentration is visible in {topCategory}.",
                "Most month-to-date variance comes from {topCategory}.",
            ],
            [
                "At {spendDeltaPct}%, this pace can squeeze margin if left alone.",
                "Targeted controls here beat broad cuts.",
            ],
        ),
        "income": combine(
            [
                "A {incomeDeltaPct}% move in inflows is material for your plan.",
                "Income changed enough to justify planning with two scenarios.",
                "Your income signal directly affects savings and repayment cadence.",
            ],
            [
                "Plan with a buffer so execution stays resilient.",
                "Treat volatility management as part of the income plan.",
            ],
        ),
        "savings": combine(
            [
                "Savings are running at {savingsRatePct}% and can scale with structure.",
                "Your savings trend exists, and consistency is the multiplier.",
                "This cycle shows savings behavior stable enough to optimize.",
            ],
            [
                "Reaching {targetSavingsRatePct}% depends more on cadence than effort.",
                "Frequent small transfers tend to beat occasional large ones.",
            ],
        ),
        "risk": combine(
            [
                "Risk is coming from behavior clusters rather than a single category.",
                "{anomalyCount} unusual transactions stand out in this month's activity.",
                "Leading risk signals sit in threshold pressure and transaction pace.",
            ],
            [
                "Early warning controls are the best-return fix right now.",
                "Shortening reaction time matters more than cutting volume.",
            ],
        ),
        "subscriptions": combine(
            [
                "Recurring payments are reducing tactical flexibility.",
                "Fixed commitments act as a margin ceiling this month.",
                "Subscription spend is a steady drag on optional cash.",
            ],
            [
                "A quick value audit can release cash immediately.",
                "Dropping low-use plans improves short-term resilience.",
            ],
        ),
        "goals": combine(
            [
                "Goal direction is clear and execution cadence is the bottleneck.",
                "Your goals are concrete enough for measurable weekly delivery.",
                "The framework is sound and ready for tighter review loops.",
            ],
            [
                "Weekly checkpoints will improve follow-through.",
                "A visible tracking loop reduces slippage.",
            ],
        ),
        "cashflow": combine(
            [
                "Net operating result stands near {netAmount} for this period.",
                "Cashflow ended at roughly {netAmount}, which sets your short-term posture.",
                "The month closed with {netAmount} as the main control metric.",
            ],
            [
                "Timing can improve this without changing total income.",
                "Weekly balancing will smooth execution stress.",
            ],
        ),
        "debt": combine(
            [
                "Debt obligations are still tightening liquidity.",
                "Repayment load is shrinking your room for optional decisions.",
                "Servicing costs compete directly with savings capacity.",
            ],
            [
                "Ordering repayments by cost lowers financing drag faster.",
                "Matching repayment dates to inflows reduces friction.",
            ],
        ),
        "investing": combine(
            [
                "Investment readiness is improving while liquidity discipline holds.",
                "Your profile supports gradual allocation over tactical timing.",
                "This month supports an incremental investing stance with risk limits.",
            ],
            [
                "Diversification and pacing should stay non-negotiable.",
                "Protect reserves while building long-term exposure.",
            ],
        ),
        "budgeting": combine(
            [
                "Limit usage points to early budget stress in specific categories.",
                "Category pressure is rising even if the total budget looks fine.",
                "Usage velocity suggests a tighter budget cadence is needed.",
            ],
            [
                "{overBudgetCount} over-limit and {nearBudgetCount} near-limit budgets confirm the need to act.",
                "Weekly limit slices will reduce late-month overruns.",
            ],
        ),
    },
    "actions": {
        "spending": combine(
            [
                "Set a daily cap for {topCategory} and keep it visible in your weekly tracker.",
                "Apply a single-purchase ceiling to {topCategory} for the next 7 days.",
                "Batch {topCategory} purchases into fixed time windows.",
            ],
            [
                "This directly targets the {spendDeltaPct}% change.",
                "You should see control return with little disruption.",
            ],
        ),
        "income": combine(
            [
                "On income day, split inflow into operating cash and a protected reserve.",
                "Keep two budgets for variable months: a base one and a conservative one.",
                "Send extra inflow to savings or debt before discretionary spend.",
            ],
            [
                "This keeps the plan resilient under {incomeDeltaPct}% swings.",
                "It protects execution without overcorrecting.",
            ],
        ),
        "savings": combine(
            [
                "Schedule a fixed weekly savings transfer and remove manual steps.",
                "Split the monthly savings goal into weekly checkpoints.",
                "Trigger the savings transfer before discretionary spending windows.",
            ],
            [
                "It is the most reliable path from {savingsRatePct}% toward {targetSavingsRatePct}%.",
                "Cadence beats intensity for long-term consistency.",
            ],
        ),
        "risk": combine(
            [
                "Lower alert thresholds in high-variance categories today.",
                "Add a review step before frequent discretionary payments.",
                "Run a 7-day control sprint on three high-impact metrics.",
            ],
            [
                "This cuts reaction time before risk compounds.",
                "Early control usually beats late correction.",
            ],
        ),
        "subscriptions": combine(
            [
                "Rank subscriptions by usefulness and frequency this week.",
                "Pause at least one low-usage recurring service now.",
                "Compare annual and monthly plans and downgrade overpriced ones.",
            ],
            [
                "This restores flexibility without a big lifestyle change.",
                "Fixed-cost cleanup usually gives immediate margin.",
            ],
        ),
        "goals": combine(
            [
                "Turn monthly goals into weekly actions and block time for them.",
                "Focus on two high-impact goals and park the rest for now.",
                "Hold a 10-minute goal review on the same day every week.",
            ],
            [
                "Execution improves when progress stays visible.",
                "The structure reduces drift.",
            ],
        ),
        "cashflow": combine(
            [
                "Line up outgoing payment dates with your income windows.",
                "Spread large outflows instead of clustering them in one week.",
                "Set a minimum balance alert for your operating account.",
            ],
            [
                "This will steady cashflow around {netAmount}.",
                "Timing fixes often relieve stress faster than cost cuts.",
            ],
        ),
        "debt": combine(
            [
                "Rank debts by effective cost and repay in that order.",
                "Automate minimum payments close to income dates.",
                "Put extra repayments only on the most expensive debt first.",
            ],
            [
                "You will reduce financing drag sooner.",
                "It also lowers penalty exposure.",
            ],
        ),
        "investing": combine(
            [
                "Use periodic, phased entries instead of one timing-heavy move.",
                "Check your liquidity threshold before opening any new long-term position.",
                "Schedule quarterly portfolio reviews with explicit risk limits.",
            ],
            [
                "This improves resilience while keeping upside.",
                "Consistency and diversification remain the core edge.",
            ],
        ),
        "budgeting": combine(
            [
                "Create weekly micro-budgets for categories near their limit.",
                "Move alert triggers to 80% usage for sensitive categories.",
                "Recalibrate limits from the last three months of behavior.",
            ],
            [
                "This addresses {overBudgetCount} over-limit and {nearBudgetCount} near-limit budgets.",
                "Expect fewer late-month overruns with this cadence.",
            ],
        ),
    },
    "generic_summaries": combine(
        [
            "{monthName} data shows that consistency is beating intensity.",
            "Your current profile is manageable with steady weekly controls.",
            "Small structured adjustments can clearly improve the next cycle.",
        ],
        [
            "Start with the two highest-impact actions.",
            "Automated routines will protect momentum.",
        ],
    ),
    "generic_findings": combine(
        [
            "Behavior patterns matter more now than isolated transactions.",
            "Timing and frequency are shaping outcomes as much as amounts.",
            "Execution rhythm is the best predictor of next month's stability.",
        ],
        [
            "This is actionable with lightweight controls.",
            "Weekly visibility is the main accelerator.",
        ],
    ),
    "generic_actions": combine(
        [
            "Run a 10-minute weekly finance reset at a fixed time.",
            "Track only three control metrics for the next 14 days.",
            "Apply a 24-hour pause rule to non-essential purchases.",
        ],
        [
            "This improves decision quality quickly.",
            "The routine is simple enough to sustain.",
        ],
    ),
}

_TR: Dict[str, Dict[str, List[str]]] = {
    "summaries": {
        "spending": combine(
            [
                "{monthName} döneminde harcama temposunu en çok {topCategory} belirliyor.",
                "Bu ayın gider dağılımında baskı noktası {topCategory}.",
                "{monthName} giderleri {topCategory} etrafında yoğunlaşıyor.",
            ],
            [
                "Haftalık tavan, %{spendDeltaPct} değişimi dengelemenin en hızlı yolu.",
                "Erken yapılan küçük düzeltmeler sert kesintiye gerek bırakmaz.",
            ],
        ),
        "income": combine(
            [
                "{monthName} ayında gelir %{incomeDeltaPct} değişti ve planlama alanı farklılaştı.",
                "Gelir akışın %{incomeDeltaPct} kaydı, ikinci bir senaryo ile planlamayı gerektiriyor.",
                "Bu ayki gelir sinyali tüm bütçe kararlarını etkileyecek kadar güçlü.",
            ],
            [
                "Değişimi yaşam tarzı harcamaları artmadan önce birikime yönlendir.",
                "Bunu kontrolleri gevşetmek için değil, planlama kaldıracı olarak kullan.",
            ],
        ),
        "savings": combine(
            [
                "Birikim oranın yaklaşık %{savingsRatePct} ve iyileştirilebilir durumda.",
                "{monthName} ayında birikim davranışın görünür ve istikrarlı.",
                "Bu ay birikimde net bir ivme var, ancak henüz tam hızda değil.",
            ],
            [
                "Planlı bir transfer %{targetSavingsRatePct} hedefine olan farkı kapatabilir.",
                "Haftalık otomasyon ay sonu kararlarından daha tutarlı sonuç verir.",
            ],
        ),
        "risk": combine(
            [
                "Bu ayki risk sinyalleri çoğunlukla tempo ve limit baskısıyla ilgili.",
                "Risk tablosu yönetilebilir, ancak erken göstergeler belirginleşiyor.",
                "Mevcut görünüm tepkisel kesintiler yerine önleyici kontroller gerektiriyor.",
            ],
            [
                "Uyarı eşiklerini şimdi düşürmek ileride pahalı düzeltmeleri önler.",
                "Erken müdahale dalgalanmayı kontrol altında tutar.",
            ],
        ),
        "subscriptions": combine(
            [
                "Düzenli ödemeler bütçe esnekliğini daraltıyor.",
                "Abonelikler bu ay gizli bir sabit gider tabanı gibi çalışıyor.",
                "Tekrarlayan ödemeler taktik düzenleme alanını sıkıştırıyor.",
            ],
            [
                "Kullanıma dayalı bir temizlik hemen nakit alanı açabilir.",
                "Düşük değerli planları sadeleştirmek genelde hızlı kazanç sağlar.",
            ],
        ),
        "goals": combine(
            [
                "Hedeflerin net; artık belirleyici olan uygulama ritmi.",
                "Plan tutarlı ve sonucu süreklilik belirleyecek.",
                "{monthName} verisi hedefleri rutinlere dönüştürmek için yeterli.",
            ],
            [
                "Kısa kontrol noktaları sapmayı azaltır ve ilerlemeyi görünür kılar.",
                "Sonraki adımları takvime koymak en etkili hamle.",
            ],
        ),
        "cashflow": combine(
            [
                "{monthName} için net nakit akışı yaklaşık {netAmount} seviyesinde kapandı.",
                "Ay sonu nakit akışı {netAmount}; bu net bir operasyon sinyali.",
                "{monthName} nakit dengesi {netAmount} civarında oturdu.",
            ],
            [
                "Ödeme zamanlamasını iyileştirmek gelir değişmeden istikrar sağlar.",
                "Akışı haftalık yönetmek ay içindeki stresi dağıtır.",
            ],
        ),
        "debt": combine(
            [
                "Borç ödemeleri planlama kapasitesinin önemli bir kısmını tüketiyor.",
                "Geri ödeme yükü aylık esnekliği azaltmaya devam ediyor.",
                "Bu ay borç ödeme sırasının sıkılaştırılması gerektiği görülüyor.",
            ],
            [
                "En pahalı borcu önce kapatmak genelde en hızlı rahatlamayı sağlar.",
                "Vade tarihlerini gelir günlerine hizalamak gecikme riskini düşürür.",
            ],
        ),
        "investing": combine(
            [
                "Likidite korunduğu sürece mevcut yapı disiplinli yatırıma uygun.",
                "Kurala dayalı portföy adımları için makul bir temel oluştu.",
                "Bu dönemde yatırım kararları plansızdan sistematiğe geçebilir.",
            ],
            [
                "Kademeli giriş ve çeşitlendirme varsayılan tutum olmalı.",
                "Uzun vadeli pozisyonları büyütürken yedek birikimi koru.",
            ],
        ),
        "budgeting": combine(
            [
                "Bazı kategorilerde bütçe limitleri stres bölgesine yaklaşıyor.",
                "Kategori kullanımı, limitlerin daha sık takip edilmesi gerektiğini gösteriyor.",
                "Bütçe çerçevesi işliyor, ancak limit disiplini güçlenmeli.",
            ],
            [
                "{overBudgetCount} limit aşımı ve {nearBudgetCount} limite yakın bütçe yapılı kontrol istiyor.",
                "Aylık limitleri haftalık dilimlere bölmek ay sonu baskısını azaltır.",
            ],
        ),
    },
    "findings": {
        "spending": combine(
            [
                "Şu an en güçlü gider kalemi {topCategory}.",
                "Harcama yoğunlaşması {topCategory} kategorisinde belirgin.",
                "Ay içi sapmanın büyük kısmı {topCategory} kaynaklı.",
            ],
            [
                "%{spendDeltaPct} tempo müdahale edilmezse marjı daraltabilir.",
                "Burada hedefli kontrol, genel kesintiden daha etkili.",
            ],
        ),
        "income": combine(
            [
                "Gelirdeki %{incomeDeltaPct} değişim plan için önemli.",
                "Gelir, iki senaryolu planlamayı gerektirecek kadar değişti.",
                "Gelir sinyali birikim ve geri ödeme temposunu doğrudan etkiliyor.",
            ],
            [
                "Uygulamanın dayanıklı kalması için tampon payı ile planla.",
                "Dalgalanma yönetimini gelir planının parçası olarak gör.",
            ],
        ),
        "savings": combine(
            [
                "Birikim %{savingsRatePct} seviyesinde ve yapı kurularak büyütülebilir.",
                "Birikim eğilimi mevcut; çarpan etkisi süreklilikte.",
                "Bu dönem birikim davranışının optimize edilecek kadar istikrarlı olduğunu gösteriyor.",
            ],
            [
                "%{targetSavingsRatePct} hedefine ulaşmak yoğunluktan çok ritme bağlı.",
                "Sık ve küçük transferler seyrek büyük çabalardan iyi sonuç verir.",
            ],
        ),
        "risk": combine(
            [
                "Risk tek bir kategoriden değil, davranış kümelerinden geliyor.",
                "Bu ayki işlemlerde {anomalyCount} olağandışı hareket dikkat çekiyor.",
                "Öncü risk sinyalleri limit baskısı ve işlem temposunda.",
            ],
            [
                "Erken uyarı kontrolleri şu an en yüksek getirili düzeltme.",
                "Tepki süresini kısaltmak hacmi azaltmaktan daha önemli.",
            ],
        ),
        "subscriptions": combine(
            [
                "Düzenli ödemeler taktik esnekliği azaltıyor.",
                "Sabit taahhütler bu ay marj tavanı gibi davranıyor.",
                "Abonelik harcaması serbest nakit üzerinde sürekli bir yük.",
            ],
            [
                "Hızlı bir değer kontrolü hemen nakit açabilir.",
                "Az kullanılan planları bırakmak kısa vadeli dayanıklılığı artırır.",
            ],
        ),
        "goals": combine(
            [
                "Hedef yönü net; darboğaz uygulama ritmi.",
                "Hedeflerin haftalık ölçülebilir teslim için yeterince somut.",
                "Çerçeve sağlam ve daha sık gözden geçirmeye hazır.",
            ],
            [
                "Haftalık kontrol noktaları takibi güçlendirir.",
                "Görünür bir takip döngüsü kaymayı azaltır.",
            ],
        ),
        "cashflow": combine(
            [
                "Bu dönemin net sonucu {netAmount} civarında.",
                "Nakit akışı yaklaşık {netAmount} ile kapandı ve kısa vadeli duruşu belirliyor.",
                "Ay, ana kontrol metriği olarak {netAmount} ile kapandı.",
            ],
            [
                "Zamanlama, toplam gelir değişmeden bunu iyileştirebilir.",
                "Haftalık denge uygulama stresini yumuşatır.",
            ],
        ),
        "debt": combine(
            [
                "Borç yükümlülükleri likiditeyi sıkıştırmaya devam ediyor.",
                "Geri ödeme yükü isteğe bağlı karar alanını daraltıyor.",
                "Borç maliyeti birikim kapasitesiyle doğrudan yarışıyor.",
            ],
            [
                "Ödemeleri maliyete göre sıralamak finansman yükünü hızla azaltır.",
                "Ödeme tarihlerini gelirle eşlemek sürtünmeyi azaltır.",
            ],
        ),
        "investing": combine(
            [
                "Likidite disiplini korundukça yatırım hazırlığı artıyor.",
                "Profilin taktik zamanlama yerine kademeli dağılımı destekliyor.",
                "Bu ay risk sınırlarıyla kademeli bir yatırım duruşunu destekliyor.",
            ],
            [
                "Çeşitlendirme ve kademelendirme vazgeçilmez kalmalı.",
                "Uzun vadeli pozisyon kurarken yedek birikimi koru.",
            ],
        ),
        "budgeting": combine(
            [
                "Limit kullanımı bazı kategorilerde erken bütçe stresine işaret ediyor.",
                "Toplam bütçe iyi görünse de kategori baskısı artıyor.",
                "Kullanım hızı daha sık bütçe takibi gerektiğini gösteriyor.",
            ],
            [
                "{overBudgetCount} limit aşımı ve {nearBudgetCount} limite yakın bütçe müdahale ihtiyacını doğruluyor.",
                "Haftalık limit dilimleri ay sonu aşımlarını azaltır.",
            ],
        ),
    },
    "actions": {
        "spending": combine(
            [
                "{topCategory} için günlük tavan belirle ve haftalık takipte görünür tut.",
                "Önümüzdeki 7 gün {topCategory} için tek işlem üst sınırı uygula.",
                "{topCategory} alışverişlerini sabit zaman aralıklarında topla.",
            ],
            [
                "Bu doğrudan %{spendDeltaPct} değişimi hedefler.",
                "Az rahatsızlıkla kontrolün geri geldiğini göreceksin.",
            ],
        ),
        "income": combine(
            [
                "Gelir gününde parayı işletme nakdi ve korunan yedek olarak ikiye ayır.",
                "Değişken aylar için temel ve temkinli iki bütçe tut.",
                "Ek geliri isteğe bağlı harcamadan önce birikime ya da borca yönlendir.",
            ],
            [
                "Bu, planı %{incomeDeltaPct} dalgalanmaya karşı dayanıklı tutar.",
                "Aşırı düzeltme yapmadan uygulamayı korur.",
            ],
        ),
        "savings": combine(
            [
                "Sabit haftalık birikim transferi planla ve manuel adımları kaldır.",
                "Aylık birikim hedefini haftalık kontrol noktalarına böl.",
                "Birikim transferini isteğe bağlı harcama döneminden önce tetikle.",
            ],
            [
                "%{savingsRatePct} seviyesinden %{targetSavingsRatePct} hedefine en güvenilir yol budur.",
                "Uzun vadede ritim yoğunluktan daha etkilidir.",
            ],
        ),
        "risk": combine(
            [
                "Dalgalı kategorilerde uyarı eşiklerini bugün düşür.",
                "Sık yapılan isteğe bağlı ödemelerden önce bir kontrol adımı ekle.",
                "Üç kritik metrik üzerinde 7 günlük bir kontrol sprinti yap.",
            ],
            [
                "Bu, risk büyümeden tepki süresini kısaltır.",
                "Erken kontrol genelde geç düzeltmeden iyidir.",
            ],
        ),
        "subscriptions": combine(
            [
                "Bu hafta abonelikleri fayda ve kullanım sıklığına göre sırala.",
                "Az kullanılan en az bir düzenli hizmeti şimdi duraklat.",
                "Yıllık ve aylık planları karşılaştır, pahalı olanları düşür.",
            ],
            [
                "Bu, yaşam tarzını çok değiştirmeden esneklik kazandırır.",
                "Sabit gider temizliği genelde anında marj sağlar.",
            ],
        ),
        "goals": combine(
            [
                "Aylık hedefleri haftalık aksiyonlara çevir ve takvimde yer ayır.",
                "Yüksek etkili iki hedefe odaklan, diğerlerini şimdilik beklet.",
                "Her hafta aynı gün 10 dakikalık hedef değerlendirmesi yap.",
            ],
            [
                "İlerleme görünür kaldığında uygulama iyileşir.",
                "Bu yapı sapmayı azaltır.",
            ],
        ),
        "cashflow": combine(
            [
                "Giden ödeme tarihlerini gelir günlerine göre hizala.",
                "Büyük çıkışları tek haftaya yığmak yerine yay.",
                "Günlük hesabın için minimum bakiye uyarısı kur.",
            ],
            [
                "Bu, nakit akışını {netAmount} civarında dengeler.",
                "Zamanlama düzeltmeleri çoğu zaman kesintiden hızlı rahatlatır.",
            ],
        ),
        "debt": combine(
            [
                "Borçları gerçek maliyetine göre sırala ve bu sırayla öde.",
                "Asgari ödemeleri gelir günlerine yakın otomatikleştir.",
                "Ek ödemeleri önce en pahalı borca yap.",
            ],
            [
                "Finansman yükünü daha erken azaltırsın.",
                "Gecikme cezası riskini de düşürür.",
            ],
        ),
        "investing": combine(
            [
                "Tek seferlik zamanlama yerine periyodik ve kademeli giriş yap.",
                "Yeni uzun vadeli pozisyondan önce likidite eşiğini kontrol et.",
                "Açık risk sınırlarıyla çeyreklik portföy değerlendirmesi planla.",
            ],
            [
                "Bu, getiri potansiyelini korurken dayanıklılığı artırır.",
                "Süreklilik ve çeşitlendirme temel avantaj olmaya devam eder.",
            ],
        ),
        "budgeting": combine(
            [
                "Limite yakın kategoriler için haftalık mini bütçeler oluştur.",
                "Hassas kategorilerde uyarıyı %80 kullanıma çek.",
                "Limitleri son üç ayın davranışına göre yeniden ayarla.",
            ],
            [
                "Bu, {overBudgetCount} limit aşımı ve {nearBudgetCount} limite yakın bütçeyi hedefler.",
                "Bu ritimle ay sonu aşımları azalır.",
            ],
        ),
    },
    "generic_summaries": combine(
        [
            "{monthName} verisi sürekliliğin yoğunluktan daha etkili olduğunu gösteriyor.",
            "Mevcut profilin düzenli haftalık kontrollerle yönetilebilir.",
            "Küçük ve yapılı ayarlar sonraki dönemi belirgin şekilde iyileştirebilir.",
        ],
        [
            "En yüksek etkili iki aksiyonla başla.",
            "Otomatik rutinler ivmeyi korur.",
        ],
    ),
    "generic_findings": combine(
        [
            "Davranış kalıpları artık tekil işlemlerden daha önemli.",
            "Zamanlama ve sıklık, tutarlar kadar sonucu etkiliyor.",
            "Uygulama ritmi gelecek ayın istikrarının en iyi göstergesi.",
        ],
        [
            "Bu hafif kontrollerle uygulanabilir.",
            "Haftalık görünürlük ana hızlandırıcı.",
        ],
    ),
    "generic_actions": combine(
        [
            "Sabit bir saatte 10 dakikalık haftalık finans kontrolü yap.",
            "Önümüzdeki 14 gün yalnızca üç kontrol metriğini takip et.",
            "Zorunlu olmayan alışverişlerde 24 saat bekleme kuralı uygula.",
        ],
        [
            "Bu karar kalitesini hızla artırır.",
            "Rutin sürdürülebilecek kadar basit.",
        ],
    ),
}

_RU: Dict[str, Dict[str, List[str]]] = {
    "summaries": {
        "spending": combine(
            [
                "В периоде {monthName} темп расходов в основном задает {topCategory}.",
                "Главная точка давления в расходах этого месяца: {topCategory}.",
                "Расходы за {monthName} концентрируются вокруг категории {topCategory}.",
            ],
            [
                "Недельный лимит быстрее всего компенсирует изменение на {spendDeltaPct}%.",
                "Небольшие ранние корректировки сохраняют запас без резких сокращений.",
            ],
        ),
        "income": combine(
            [
                "Доход за {monthName} изменился на {incomeDeltaPct}%, и пространство для планирования сдвинулось.",
                "Поступления сместились на {incomeDeltaPct}% и требуют второго сценария плана.",
                "Сигнал по доходу в этом месяце влияет на все бюджетные решения.",
            ],
            [
                "Направьте изменение в резерв раньше, чем вырастут текущие траты.",
                "Используйте это как рычаг планирования, а не повод ослабить контроль.",
            ],
        ),
        "savings": combine(
            [
                "Норма сбережений около {savingsRatePct}%, и ее можно улучшить.",
                "Поведение сбережений за {monthName} заметное и стабильное.",
                "В этом месяце у сбережений есть явная динамика, но без полного ускорения.",
            ],
            [
                "Плановый перевод поможет приблизиться к цели {targetSavingsRatePct}%.",
                "Еженедельная автоматизация надежнее решений в конце месяца.",
            ],
        ),
        "risk": combine(
            [
                "Сигналы риска в этом месяце связаны в основном с темпом трат и лимитами.",
                "Картина рисков управляема, но ранние индикаторы становятся заметнее.",
                "Текущая ситуация требует профилактического контроля, а не срочных сокращений.",
            ],
            [
                "Снизьте пороги уведомлений сейчас, чтобы избежать дорогих исправлений позже.",
                "Раннее вмешательство удерживает колебания под контролем.",
            ],
        ),
        "subscriptions": combine(
            [
                "Регулярные обязательства сужают гибкость бюджета.",
                "Подписки в этом месяце работают как скрытый уровень фиксированных трат.",
                "Повторяющиеся списания сжимают пространство для маневра.",
            ],
            [
                "Чистка по фактическому использованию сразу освободит деньги.",
                "Пересмотр малополезных тарифов обычно дает быстрый эффект.",
            ],
        ),
        "goals": combine(
            [
                "Цели понятны, и теперь решающим становится ритм исполнения.",
                "План последователен, а результат определит регулярность.",
                "Данных за {monthName} достаточно, чтобы превратить цели в привычки.",
            ],
            [
                "Короткие контрольные точки снижают отклонения.",
                "Запланировать следующие шаги сейчас важнее всего.",
            ],
        ),
        "cashflow": combine(
            [
                "Чистый денежный поток за {monthName} составил около {netAmount}.",
                "Денежный поток на конец месяца: {netAmount}, это ясный операционный сигнал.",
                "Баланс денежного потока за {monthName} сложился около {netAmount}.",
            ],
            [
                "Правильное время платежей повысит стабильность еще до роста дохода.",
                "Еженедельное управление потоком снижает напряжение в течение месяца.",
            ],
        ),
        "debt": combine(
            [
                "Обслуживание долга все еще забирает заметную часть ресурсов.",
                "Платежи по долгам продолжают снижать гибкость бюджета.",
                "Этот месяц показывает, что порядок погашения стоит ужесточить.",
            ],
            [
                "Погашение самого дорогого долга первым обычно дает быстрое облегчение.",
                "Совмещение дат платежей с поступлениями снижает риск штрафов.",
            ],
        ),
        "investing": combine(
            [
                "Текущая структура подходит для дисциплинированных инвестиций при защищенной ликвидности.",
                "Есть разумная база для инвестиций по понятным правилам.",
                "В этом цикле инвестиционные решения можно сделать системными.",
            ],
            [
                "Поэтапный вход и диверсификация должны оставаться нормой.",
                "Сохраняйте резерв, наращивая долгосрочные позиции.",
            ],
        ),
        "budgeting": combine(
            [
                "Лимиты бюджета в некоторых категориях приближаются к зоне напряжения.",
                "Использование категорий показывает, что лимиты нужно отслеживать чаще.",
                "Бюджетная рамка работает, но дисциплина по лимитам должна усилиться.",
            ],
            [
                "Превышено бюджетов: {overBudgetCount}, близко к лимиту: {nearBudgetCount}; нужен системный контроль.",
                "Деление месячных лимитов на недельные снижает давление в конце месяца.",
            ],
        ),
    },
    "findings": {
        "spending": combine(
            [
                "Сейчас главный драйвер расходов: {topCategory}.",
                "Концентрация трат заметна в категории {topCategory}.",
                "Большая часть отклонения за месяц приходится на {topCategory}.",
            ],
            [
                "Темп {spendDeltaPct}% без контроля может съесть запас.",
                "Точечный контроль здесь эффективнее общих сокращений.",
            ],
        ),
        "income": combine(
            [
                "Изменение дохода на {incomeDeltaPct}% существенно для плана.",
                "Доход изменился достаточно, чтобы планировать по двум сценариям.",
                "Сигнал по доходу напрямую влияет на темп сбережений и погашений.",
            ],
            [
                "Закладывайте запас, чтобы план оставался устойчивым.",
                "Считайте управление колебаниями частью плана по доходу.",
            ],
        ),
        "savings": combine(
            [
                "Сбережения идут на уровне {savingsRatePct}% и могут расти при четкой структуре.",
                "Тренд сбережений есть, а множитель результата в регулярности.",
                "Этот цикл показывает, что сбережения достаточно стабильны для оптимизации.",
            ],
            [
                "Достижение {targetSavingsRatePct}% зависит больше от ритма, чем от усилий.",
                "Частые небольшие переводы обычно лучше редких крупных.",
            ],
        ),
        "risk": combine(
            [
                "Риск исходит от групп привычек, а не от одной категории.",
                "В операциях месяца выделяются необычные транзакции: {anomalyCount}.",
                "Ранние сигналы риска видны в давлении на лимиты и темпе операций.",
            ],
            [
                "Ранние предупреждения сейчас дают лучший эффект.",
                "Сократить время реакции важнее, чем сократить объем трат.",
            ],
        ),
        "subscriptions": combine(
            [
                "Регулярные платежи уменьшают тактическую гибкость.",
                "Фиксированные обязательства в этом месяце ограничивают запас.",
                "Подписки постоянно давят на свободные деньги.",
            ],
            [
                "Быстрая проверка ценности подписок сразу высвободит средства.",
                "Отказ от малоиспользуемых тарифов повышает краткосрочную устойчивость.",
            ],
        ),
        "goals": combine(
            [
                "Направление целей ясно, узкое место в ритме исполнения.",
                "Цели достаточно конкретны для измеримых еженедельных шагов.",
                "Рамка надежна и готова к более частым проверкам.",
            ],
            [
                "Еженедельные контрольные точки улучшат исполнение.",
                "Наглядный цикл отслеживания уменьшает отклонения.",
            ],
        ),
        "cashflow": combine(
            [
                "Чистый результат периода около {netAmount}.",
                "Денежный поток завершился на уровне примерно {netAmount}.",
                "Месяц закрылся с ключевым показателем {netAmount}.",
            ],
            [
                "Время платежей может улучшить это без роста дохода.",
                "Еженедельная балансировка снизит напряжение.",
            ],
        ),
        "debt": combine(
            [
                "Долговые обязательства продолжают сжимать ликвидность.",
                "Нагрузка по погашению сужает свободу решений.",
                "Стоимость обслуживания долга конкурирует со сбережениями.",
            ],
            [
                "Порядок погашения по стоимости быстрее снижает нагрузку.",
                "Совпадение дат платежей с поступлениями уменьшает трения.",
            ],
        ),
        "investing": combine(
            [
                "Готовность к инвестициям растет при сохранении дисциплины ликвидности.",
                "Профиль поддерживает постепенное распределение, а не угадывание момента.",
                "Этот месяц поддерживает поэтапные инвестиции с лимитами риска.",
            ],
            [
                "Диверсификация и поэтапность должны оставаться обязательными.",
                "Защищайте резерв, формируя долгосрочные позиции.",
            ],
        ),
        "budgeting": combine(
            [
                "Использование лимитов указывает на раннее напряжение в отдельных категориях.",
                "Давление по категориям растет, даже если общий бюджет в норме.",
                "Скорость расходования требует более частого контроля бюджета.",
            ],
            [
                "Превышено: {overBudgetCount}, близко к лимиту: {nearBudgetCount}; это подтверждает необходимость действий.",
                "Недельные доли лимитов уменьшат перерасход в конце месяца.",
            ],
        ),
    },
    "actions": {
        "spending": combine(
            [
                "Установите дневной лимит для {topCategory} и держите его на виду в недельном трекере.",
                "На ближайшие 7 дней введите потолок одной покупки для {topCategory}.",
                "Объединяйте покупки {topCategory} в фиксированные окна времени.",
            ],
            [
                "Это прямо отвечает на изменение {spendDeltaPct}%.",
                "Контроль вернется без заметных неудобств.",
            ],
        ),
        "income": combine(
            [
                "В день дохода делите поступление на операционные деньги и защищенный резерв.",
                "Для переменных месяцев держите два бюджета: базовый и осторожный.",
                "Направляйте дополнительный доход в сбережения или долг раньше необязательных трат.",
            ],
            [
                "Так план выдержит колебания {incomeDeltaPct}%.",
                "Это защищает исполнение без лишних корректировок.",
            ],
        ),
        "savings": combine(
            [
                "Настройте фиксированный еженедельный перевод в сбережения без ручных шагов.",
                "Разбейте месячную цель накоплений на недельные контрольные точки.",
                "Запускайте перевод в сбережения до периода необязательных трат.",
            ],
            [
                "Это самый надежный путь от {savingsRatePct}% к {targetSavingsRatePct}%.",
                "Для долгого результата ритм важнее интенсивности.",
            ],
        ),
        "risk": combine(
            [
                "Сегодня же снизьте пороги уведомлений в нестабильных категориях.",
                "Добавьте шаг проверки перед частыми необязательными платежами.",
                "Проведите 7-дневный контрольный спринт по трем ключевым метрикам.",
            ],
            [
                "Это сокращает время реакции до роста риска.",
                "Ранний контроль обычно лучше поздней коррекции.",
            ],
        ),
        "subscriptions": combine(
            [
                "На этой неделе ранжируйте подписки по пользе и частоте использования.",
                "Приостановите хотя бы один малоиспользуемый регулярный сервис.",
                "Сравните годовые и месячные тарифы и понизьте слишком дорогие.",
            ],
            [
                "Это вернет гибкость без больших изменений в образе жизни.",
                "Чистка фиксированных расходов обычно дает моментальный запас.",
            ],
        ),
        "goals": combine(
            [
                "Превратите месячные цели в недельные действия и выделите под них время.",
                "Сосредоточьтесь на двух самых важных целях, остальные отложите.",
                "Каждую неделю в один и тот же день проводите 10-минутный обзор целей.",
            ],
            [
                "Исполнение улучшается, когда прогресс виден.",
                "Такая структура снижает отклонения.",
            ],
        ),
        "cashflow": combine(
            [
                "Согласуйте даты исходящих платежей с днями поступлений.",
                "Распределяйте крупные списания, а не собирайте их в одну неделю.",
                "Настройте уведомление о минимальном остатке на основном счете.",
            ],
            [
                "Это стабилизирует денежный поток около {netAmount}.",
                "Исправление сроков часто помогает быстрее, чем сокращения.",
            ],
        ),
        "debt": combine(
            [
                "Отсортируйте долги по реальной стоимости и гасите в этом порядке.",
                "Автоматизируйте минимальные платежи рядом с датами дохода.",
                "Направляйте досрочные платежи сначала в самый дорогой долг.",
            ],
            [
                "Так вы раньше снизите долговую нагрузку.",
                "Это также уменьшает риск штрафов.",
            ],
        ),
        "investing": combine(
            [
                "Используйте регулярный поэтапный вход вместо одной ставки на момент.",
                "Перед новой долгосрочной позицией проверьте порог ликвидности.",
                "Запланируйте ежеквартальный обзор портфеля с явными лимитами риска.",
            ],
            [
                "Это повышает устойчивость и сохраняет потенциал роста.",
                "Регулярность и диверсификация остаются главным преимуществом.",
            ],
        ),
        "budgeting": combine(
            [
                "Создайте недельные мини-бюджеты для категорий у лимита.",
                "Перенесите уведомления на 80% использования для чувствительных категорий.",
                "Пересчитайте лимиты по поведению за последние три месяца.",
            ],
            [
                "Это адресует превышенные бюджеты ({overBudgetCount}) и близкие к лимиту ({nearBudgetCount}).",
                "С таким ритмом перерасходов в конце месяца станет меньше.",
            ],
        ),
    },
    "generic_summaries": combine(
        [
            "Данные за {monthName} показывают, что регулярность важнее интенсивности.",
            "Текущий профиль управляем при стабильном еженедельном контроле.",
            "Небольшие структурные изменения заметно улучшат следующий цикл.",
        ],
        [
            "Начните с двух самых эффективных действий.",
            "Автоматические привычки сохранят темп.",
        ],
    ),
    "generic_findings": combine(
        [
            "Поведенческие паттерны сейчас важнее отдельных операций.",
            "Время и частота трат влияют на результат не меньше сумм.",
            "Ритм исполнения лучше всего предсказывает стабильность следующего месяца.",
        ],
        [
            "Это можно исправить легкими мерами контроля.",
            "Еженедельная наглядность главный ускоритель.",
        ],
    ),
    "generic_actions": combine(
        [
            "Проводите 10-минутную еженедельную финансовую проверку в одно и то же время.",
            "Следующие 14 дней отслеживайте только три контрольные метрики.",
            "Применяйте правило паузы 24 часа для необязательных покупок.",
        ],
        [
            "Это быстро улучшит качество решений.",
            "Привычка достаточно проста, чтобы ее сохранить.",
        ],
    ),
}

TEMPLATE_BANKS: Dict[str, Dict[str, Dict[str, List[str]]]] = {"en": _EN, "tr": _TR, "ru": _RU}

FALLBACK_LINES = {
    "en": {
        "summary": "Monthly financial overview is ready. Small consistent controls usually produce the most stable outcome.",
        "finding": "Data suggests early corrections are usually cheaper than late-stage fixes.",
        "action": "Pick three metrics for this week and run a two-minute daily check-in.",
        "category": "general spending",
    },
    "tr": {
        "summary": "Aylık finansal görünüm hazır. Küçük ve düzenli kontrol adımları, toplam dengeyi daha güçlü hale getirir.",
        "finding": "Veri, erken müdahalenin geç düzeltmeden daha düşük maliyetli olduğunu gösteriyor.",
        "action": "Bu hafta için üç metrik seç ve her gün 2 dakikalık kontrol ritmi uygula.",
        "category": "genel harcama",
    },
    "ru": {
        "summary": "Месячный финансовый обзор готов. Небольшие регулярные действия обычно дают самый устойчивый результат.",
        "finding": "Данные показывают, что ранняя корректировка почти всегда дешевле поздней компенсации.",
        "action": "На эту неделю выберите три метрики и делайте ежедневную проверку в течение двух минут.",
        "category": "общие расходы",
    },
}

WARNING_LINES = {
    "en": {
        "negative": "Cashflow is currently negative ({netAmount}); reducing spend velocity should be prioritized short-term.",
        "recurring": "Recurring-cost ratio is elevated and reducing budget flexibility.",
        "over_budget": "{overBudgetCount} categories are already over limit; month-end pressure may increase.",
        "anomalies": "{anomalyCount} unusual transactions were flagged; verify before applying automated assumptions.",
    },
    "tr": {
        "negative": "Nakit akışı şu anda negatif bölgede ({netAmount}); kısa vadede harcama temposu düşürülmeli.",
        "recurring": "Düzenli gider oranı yükseldi; esnek bütçe alanı daralıyor.",
        "over_budget": "{overBudgetCount} kategori limit aştı; ay sonu baskısı artabilir.",
        "anomalies": "{anomalyCount} sıra dışı işlem var; doğrulama yapılmadan otomatik karar alınmamalı.",
    },
    "ru": {
        "negative": "Денежный поток находится в отрицательной зоне ({netAmount}); в ближайшие недели лучше снизить темп трат.",
        "recurring": "Доля регулярных расходов повышена; гибкость бюджета снижается.",
        "over_budget": "Категорий выше лимита: {overBudgetCount}; давление к концу месяца может усилиться.",
        "anomalies": "Обнаружено нестандартных операций: {anomalyCount}; проверьте их до автоматических решений.",
    },
}

AUTO_TRANSFER_LINES = {
    "en": "Set an automatic transfer of {amount} to savings on each income day.",
    "tr": "Gelir gününde {amount} tutarını otomatik birikim hesabına aktaracak kural tanımla.",
    "ru": "В день поступления дохода настройте автоматический перевод {amount} на счет накоплений.",
}

INVESTMENT_GUIDANCE_LINES = {
    "en": [
        "Keep a phased investing cadence instead of single concentrated entries.",
        "Protect liquidity buffers while prioritizing diversified, low-cost instruments.",
        "Rebalance quarterly to avoid silent risk concentration in one segment.",
        "Plan for volatility tolerance, not only expected returns.",
    ],
    "tr": [
        "Tek noktadan yoğun giriş yerine kademeli yatırım temposunu koru.",
        "Likidite tamponunu korurken düşük maliyetli ve geniş dağılımlı araçlara öncelik ver.",
        "Tek bir alanda sessiz risk birikmesini önlemek için çeyreklik dengeleme yap.",
        "Planı yalnızca beklenen getiriye değil, dalgalanma toleransına göre kur.",
    ],
    "ru": [
        "Сохраняйте поэтапный темп инвестиций вместо одного концентрированного входа.",
        "Защищайте резерв ликвидности и отдавайте приоритет диверсифицированным недорогим инструментам.",
        "Ребалансируйте ежеквартально, чтобы риск незаметно не скапливался в одном сегменте.",
        "Планируйте исходя из допустимой волатильности, а не только ожидаемой доходности.",
    ],
}

QUICK_WIN_LINES = {
    "en": [
        "Pause one low-utility subscription this week.",
        "Use a 24-hour pause rule for impulse purchases.",
        "Reduce the most repetitive small expense in one category.",
        "Set a fixed time for your weekly spending review.",
        "Add a per-transaction cap in the category nearest to limit.",
    ],
    "tr": [
        "Bu hafta az kullandığın bir aboneliği askıya al.",
        "Dürtüsel alışverişler için 24 saat bekleme kuralı uygula.",
        "Bir kategoride en sık tekrarlanan küçük harcamayı azalt.",
        "Haftalık harcama kontrolün için sabit bir zaman belirle.",
        "Limite en yakın kategoride işlem başına üst sınır koy.",
    ],
    "ru": [
        "На этой неделе приостановите одну малополезную подписку.",
        "Для импульсных покупок применяйте правило паузы 24 часа.",
        "Сократите самую частую мелкую трату в одной категории.",
        "Назначьте фиксированное время для недельного обзора расходов.",
        "В категории ближе всего к лимиту введите потолок на одну операцию.",
    ],
}


def template_language(language: str | None) -> str:
    normalized = str(language or "").strip().lower()
    for code in ("tr", "ru", "en"):
        if normalized == code or normalized.startswith(f"{code}-"):
            return code
    return "en"


def get_template_bank(language: str | None) -> Dict[str, Dict[str, List[str]]]:
    return TEMPLATE_BANKS[template_language(language)]
